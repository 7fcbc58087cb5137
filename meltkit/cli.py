#!/usr/bin/env python3
"""
Melting Toolkit - command-line interface
"""
import argparse
import json
import logging
import sys
from pathlib import Path

from meltkit import __version__, __author__
from meltkit.utils.logging_utils import setup_logging


def build_parser():
    """Build the argument parser"""
    parser = argparse.ArgumentParser(
        prog='meltkit',
        description='Nucleic-acid melting temperature toolkit v{}'.format(__version__),
        epilog='Author: {}'.format(__author__),
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        '-V', '--version',
        action='version',
        version='%(prog)s v{}'.format(__version__)
    )

    subparsers = parser.add_subparsers(
        dest='command',
        title='commands',
        metavar='<command>'
    )

    # ==================== tm ====================
    parser_tm = subparsers.add_parser(
        'tm',
        help='Compute the melting temperature of one sequence'
    )

    parser_tm.add_argument(
        '-S', '--sequence',
        required=True,
        help="Sequence 5'->3' (the RNA strand for DNA/RNA hybrids)"
    )
    parser_tm.add_argument(
        '-C', '--complement',
        help="Complementary strand 3'->5', '-' for a missing base (default: perfect complement)"
    )
    parser_tm.add_argument(
        '-H', '--hybridization',
        default='dnadna',
        choices=['dnadna', 'dnarna', 'rnarna', 'hairpin'],
        help='Hybridization type (default: dnadna)'
    )
    parser_tm.add_argument(
        '-E', '--ions',
        help='Ion concentrations in M, e.g. Na=0.05,Mg=0.0015 (default: Na=0.05)'
    )
    parser_tm.add_argument(
        '-P', '--strand-concentration',
        type=float,
        help='Strand concentration in M (default: 5e-8)'
    )
    parser_tm.add_argument(
        '-c', '--config',
        help='Configuration file (YAML/JSON)'
    )

    method_group = parser_tm.add_argument_group('method options')
    method_group.add_argument(
        '-m', '--model',
        help='Model name, e.g. all97, san04, wetdna91 (default: automatic)'
    )
    method_group.add_argument(
        '--corrections',
        help='Comma-separated corrections, "all" or "none" '
             '(initiation, terminal_mismatch, dangling_end, loop, salt)'
    )
    method_group.add_argument(
        '--salt-model',
        choices=['san04', 'owc04', 'owc08'],
        help='Salt correction model (default: chosen from the ions)'
    )
    method_group.add_argument(
        '--self-complementary',
        action='store_true',
        default=None,
        help='Treat the sequence as self-complementary (default: detected)'
    )
    method_group.add_argument(
        '-F', '--concentration-factor',
        type=float,
        help='Stoichiometry divisor of the strand concentration (default: 4, or 1 if self-complementary)'
    )
    method_group.add_argument(
        '--dmso',
        type=float,
        help='DMSO percentage'
    )
    method_group.add_argument(
        '--formamide',
        type=float,
        help='Formamide percentage'
    )

    parser_tm.add_argument(
        '--json',
        action='store_true',
        help='Print the result as JSON'
    )
    parser_tm.add_argument(
        '--verbose',
        action='store_true',
        help='Show debug logging'
    )

    # ==================== batch ====================
    parser_batch = subparsers.add_parser(
        'batch',
        help='Compute melting temperatures for a table of sequences'
    )
    parser_batch.add_argument(
        '-i', '--input',
        required=True,
        help='Input CSV/TSV with a sequence column, or a text file with one sequence per line'
    )
    parser_batch.add_argument(
        '-o', '--output',
        default='./melting_results',
        help='Output directory (default: ./melting_results)'
    )
    parser_batch.add_argument(
        '--formats',
        nargs='+',
        choices=['csv', 'json', 'excel', 'html', 'all'],
        default=['csv'],
        help='Report formats (default: csv)'
    )
    parser_batch.add_argument(
        '--workers',
        type=int,
        help='Worker threads (default: 4)'
    )
    parser_batch.add_argument(
        '-c', '--config',
        help='Configuration file (YAML/JSON)'
    )
    parser_batch.add_argument(
        '--verbose',
        action='store_true',
        help='Show debug logging'
    )

    # ==================== models ====================
    parser_models = subparsers.add_parser(
        'models',
        help='List the available models'
    )
    parser_models.add_argument(
        '-H', '--hybridization',
        choices=['dnadna', 'dnarna', 'rnarna', 'hairpin'],
        help='Only models supporting this hybridization'
    )
    parser_models.add_argument(
        '-c', '--config',
        help='Configuration file (YAML/JSON)'
    )

    # ==================== config ====================
    parser_config = subparsers.add_parser(
        'config',
        help='Generate, validate or show a configuration file'
    )
    parser_config.add_argument(
        'action',
        choices=['generate', 'validate', 'show'],
        help='generate, validate or show'
    )
    parser_config.add_argument(
        '-o', '--output',
        help='Configuration file to write or validate'
    )
    parser_config.add_argument(
        '-f', '--format',
        choices=['yaml', 'json'],
        default='yaml',
        help='Configuration format (default: yaml)'
    )

    return parser


def _load_user_config(path):
    if not path:
        return None
    from meltkit.utils.file_utils import load_config
    return load_config(path)


def _tm_options(args):
    denaturants = {}
    if args.dmso:
        denaturants['DMSO'] = args.dmso
    if args.formamide:
        denaturants['formamide'] = args.formamide

    return {
        'sequence': args.sequence,
        'complement': args.complement,
        'hybridization': args.hybridization,
        'ions': args.ions,
        'strand_concentration': args.strand_concentration,
        'self_complementary': args.self_complementary,
        'model': args.model,
        'corrections': args.corrections,
        'salt_model': args.salt_model,
        'concentration_factor': args.concentration_factor,
        'denaturants': denaturants,
    }


def run_tm(args, logger):
    from meltkit.core.engine import MeltingEngine
    from meltkit.workflow.reporter import format_result

    engine = MeltingEngine(_load_user_config(args.config))
    environment = engine.environment(**_tm_options(args))
    result = engine.compute(environment)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print(format_result(result, environment))


def run_batch_command(args, logger):
    from meltkit.config.defaults import get_config
    from meltkit.workflow.batch import BatchProcessor
    from meltkit.workflow.reporter import ReportGenerator
    from meltkit.workflow.validator import validate_batch_inputs

    config = get_config(_load_user_config(args.config))

    validation = validate_batch_inputs(args.input, args.output, config)
    if not validation.is_valid:
        logger.error(validation.to_string())
        sys.exit(1)
    for warning in validation.warnings:
        logger.warning(warning)

    formats = config['io']['SUPPORTED_OUTPUT_FORMATS'] if 'all' in args.formats else args.formats

    batch = BatchProcessor(config).process_file(args.input, args.workers)
    reports = ReportGenerator(config).generate_all_reports(batch.results, args.output, formats)

    logger.info("=" * 60)
    logger.info(f"Sequences: {batch.total} ({batch.succeeded} computed, {batch.failed} failed)")
    if 'tm_mean' in batch.summary:
        logger.info(f"Tm range: {batch.summary['tm_min']:.2f} - {batch.summary['tm_max']:.2f} °C")
    for fmt, path in reports.items():
        logger.info(f"  - {fmt}: {path}")
    logger.info("=" * 60)


def run_models(args):
    from meltkit.core.registry import available_models
    from meltkit.config.defaults import get_config, validate_config

    config = get_config(_load_user_config(args.config))
    is_valid, errors = validate_config(config)
    if not is_valid:
        raise ValueError(f"Invalid configuration: {'; '.join(errors)}")
    engine_config = config['engine']

    models = available_models(args.hybridization)
    for family, names in models.items():
        print(f"{family}:")
        for name in names:
            print(f"  {name}")

    print("defaults:")
    for variant, name in engine_config['DEFAULT_NN_MODELS'].items():
        if not args.hybridization or variant.startswith(args.hybridization):
            print(f"  {variant}: {name} (up to {engine_config['APPROXIMATIVE_THRESHOLD']} nt)")
    for variant, name in engine_config['DEFAULT_APPROXIMATIVE_MODELS'].items():
        if not args.hybridization or variant.startswith(args.hybridization):
            print(f"  {variant}: {name} (longer sequences)")


def run_config(args):
    import yaml
    from meltkit.config.defaults import get_config, validate_config
    from meltkit.utils.file_utils import load_config, save_config

    if args.action == 'generate':
        config = get_config()
        if args.output:
            output = Path(args.output)
            if output.suffix not in ('.yaml', '.yml', '.json'):
                output = output.with_suffix('.' + args.format)
            save_config(config, output)
            print(f"✅ Configuration written: {output}")
        elif args.format == 'yaml':
            print(yaml.dump(config, default_flow_style=False, sort_keys=False))
        else:
            print(json.dumps(config, indent=2, ensure_ascii=False))

    elif args.action == 'validate':
        if not args.output:
            print("❌ Use -o to name the configuration file to validate")
            sys.exit(1)

        is_valid, errors = validate_config(get_config(load_config(args.output)))
        if is_valid:
            print("✅ Configuration is valid")
        else:
            print("❌ Configuration is invalid:")
            for error in errors:
                print(f"  - {error}")
            sys.exit(1)

    elif args.action == 'show':
        print(yaml.dump(get_config(), default_flow_style=False, sort_keys=False))


def main(argv=None):
    """Command-line entry point"""
    from meltkit.core.exceptions import MeltingError

    parser = build_parser()
    args = parser.parse_args(argv)

    log_level = logging.DEBUG if getattr(args, 'verbose', False) else logging.INFO
    setup_logging(level=log_level)
    logger = logging.getLogger(__name__)

    try:
        if args.command == 'tm':
            run_tm(args, logger)
        elif args.command == 'batch':
            run_batch_command(args, logger)
        elif args.command == 'models':
            run_models(args)
        elif args.command == 'config':
            run_config(args)
        else:
            parser.print_help()
            sys.exit(1)
    except MeltingError as e:
        logger.error(f"{type(e).__name__}: {e}")
        sys.exit(1)
    except (OSError, ValueError) as e:
        logger.error(f"Failed: {e}")
        if getattr(args, 'verbose', False):
            import traceback
            traceback.print_exc()
        sys.exit(1)


if __name__ == '__main__':
    main()
