"""
Default configuration - every tunable parameter in one place
"""

# ============================================
# Engine parameters
# ============================================
ENGINE_DEFAULTS = {
    # Sequences longer than this are routed to the approximative formulas
    'APPROXIMATIVE_THRESHOLD': 60,

    # Nearest-neighbor model chosen when none is requested
    'DEFAULT_NN_MODELS': {
        'dnadna': 'all97',
        'dnarna': 'sug95',
        'rnarna': 'xia98',
        'hairpin_dna': 'san04',
        'hairpin_rna': 'xia98',
    },

    # Approximative formula chosen for long sequences
    'DEFAULT_APPROXIMATIVE_MODELS': {
        'dnadna': 'wetdna91',
        'dnarna': 'wetdnarna91',
        'rnarna': 'wetrna91',
    },

    'DEFAULT_CORRECTIONS': [
        'initiation',
        'terminal_mismatch',
        'dangling_end',
        'loop',
        'salt',
    ],

    # Strand concentration (molar) when none is given
    'DEFAULT_STRAND_CONCENTRATION': 5e-8,

    # Gas constant (cal/mol/K)
    'GAS_CONSTANT': 1.987,
    'CALORIE_TO_JOULE': 4.184,

    # Smallest hairpin loop accepted by the stem search
    'MIN_HAIRPIN_LOOP': 3,
}

# ============================================
# Ionic conditions (molar)
# ============================================
ION_DEFAULTS = {
    'KNOWN_IONS': ['Na', 'K', 'Tris', 'Mg', 'dNTP'],
    'DEFAULT_IONS': {'Na': 0.05},

    # Sodium equivalent of free Mg2+ (von Ahsen et al. 2001, molar units)
    'MG_SODIUM_EQUIVALENT': 3.795,

    # Salt model chosen when none is requested
    'DEFAULT_SALT_MODEL': 'san04',
    'DEFAULT_MAGNESIUM_SALT_MODEL': 'owc08',
}

# ============================================
# Denaturants (Tm decrease per percent)
# ============================================
DENATURANT_DEFAULTS = {
    'KNOWN_DENATURANTS': ['DMSO', 'formamide'],
    'DMSO_FACTOR': 0.75,
    'FORMAMIDE_FACTOR': 0.65,
}

# ============================================
# Batch processing
# ============================================
BATCH_DEFAULTS = {
    'MAX_WORKERS': 4,
    'BATCH_SIZE': 100,
    'SEQUENCE_COLUMN': 'sequence',
    'OPTIONAL_COLUMNS': [
        'name', 'complement', 'hybridization', 'ions',
        'strand_concentration', 'model', 'corrections',
        'salt_model', 'self_complementary', 'concentration_factor',
        'denaturants',
    ],
}

# ============================================
# Input / output formats
# ============================================
IO_DEFAULTS = {
    'SUPPORTED_INPUT_FORMATS': ['csv', 'tsv', 'txt'],
    'SUPPORTED_OUTPUT_FORMATS': ['csv', 'json', 'excel', 'html'],

    'CSV_FORMAT': {
        'delimiter': ',',
        'encoding': 'utf-8',
        'float_format': '%.4f',
    },

    'OUTPUT_COLUMNS': [
        'name', 'sequence', 'hybridization', 'method',
        'tm', 'enthalpy', 'entropy',
        'enthalpy_joules', 'entropy_joules', 'error',
    ],
    'FILE_PREFIX': 'melting',
}

# ============================================
# Merge every section
# ============================================
DEFAULT_CONFIG = {
    'engine': ENGINE_DEFAULTS,
    'ions': ION_DEFAULTS,
    'denaturants': DENATURANT_DEFAULTS,
    'batch': BATCH_DEFAULTS,
    'io': IO_DEFAULTS,
}


def get_config(user_config=None):
    """
    Return the configuration with user overrides merged in

    Args:
        user_config: user configuration dict (sections -> values)

    Returns:
        merged configuration dict
    """
    import copy

    config = copy.deepcopy(DEFAULT_CONFIG)

    if user_config:
        for section in config.keys():
            if section in user_config:
                if isinstance(config[section], dict) and isinstance(user_config[section], dict):
                    config[section].update(user_config[section])
                else:
                    config[section] = user_config[section]

    return config


def validate_config(config):
    """
    Check a configuration for missing or out-of-range values

    Args:
        config: configuration dict

    Returns:
        (is_valid, errors): validity flag and list of messages
    """
    errors = []

    required_params = {
        'engine': ['APPROXIMATIVE_THRESHOLD', 'DEFAULT_NN_MODELS',
                   'DEFAULT_APPROXIMATIVE_MODELS', 'GAS_CONSTANT'],
        'ions': ['KNOWN_IONS', 'MG_SODIUM_EQUIVALENT'],
        'batch': ['MAX_WORKERS'],
    }

    for section, params in required_params.items():
        if section not in config:
            errors.append(f"Missing required section: {section}")
            continue
        for param in params:
            if param not in config[section]:
                errors.append(f"Missing required parameter: {section}.{param}")

    if errors:
        return False, errors

    engine = config['engine']
    if engine['APPROXIMATIVE_THRESHOLD'] < 2:
        errors.append("APPROXIMATIVE_THRESHOLD must be at least 2")

    if engine['GAS_CONSTANT'] <= 0:
        errors.append("GAS_CONSTANT must be positive")

    if engine.get('DEFAULT_STRAND_CONCENTRATION', 1) <= 0:
        errors.append("DEFAULT_STRAND_CONCENTRATION must be positive")

    for hybridization in ('dnadna', 'dnarna', 'rnarna', 'hairpin_dna', 'hairpin_rna'):
        if hybridization not in engine['DEFAULT_NN_MODELS']:
            errors.append(f"No default nearest-neighbor model for {hybridization}")

    for hybridization in ('dnadna', 'dnarna', 'rnarna'):
        if hybridization not in engine['DEFAULT_APPROXIMATIVE_MODELS']:
            errors.append(f"No default approximative model for {hybridization}")

    unknown = set(engine.get('DEFAULT_CORRECTIONS', [])) - set(ENGINE_DEFAULTS['DEFAULT_CORRECTIONS'])
    if unknown:
        errors.append(f"Unknown corrections: {sorted(unknown)}")

    for ion, value in config['ions'].get('DEFAULT_IONS', {}).items():
        if ion not in config['ions']['KNOWN_IONS']:
            errors.append(f"Unknown default ion: {ion}")
        elif value < 0:
            errors.append(f"Default concentration of {ion} cannot be negative")

    if config['batch']['MAX_WORKERS'] < 1:
        errors.append("MAX_WORKERS must be at least 1")

    return len(errors) == 0, errors
