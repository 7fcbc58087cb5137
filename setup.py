#!/usr/bin/env python3
"""
Packaging configuration
"""
from setuptools import setup, find_packages

# read the version number
with open('meltkit/__init__.py', 'r') as f:
    for line in f:
        if line.startswith('__version__'):
            version = line.split('=')[1].strip().strip("'\"")
            break
    else:
        version = '1.0.0'

setup(
    name='melting-toolkit',
    version=version,
    author='Melting Toolkit Developers',
    description='Melting temperature, enthalpy and entropy of nucleic-acid duplexes and hairpins',
    long_description=open('README.md', encoding='utf-8').read(),
    long_description_content_type='text/markdown',
    packages=find_packages(exclude=['tests', 'tests.*', 'examples']),
    install_requires=[
        'biopython>=1.79',
        'pandas>=1.3.0',
        'numpy>=1.21.0',
        'jinja2>=3.0.0',
        'openpyxl>=3.0.0',
        'pyyaml>=6.0',
    ],
    extras_require={
        'dev': [
            'pytest>=6.0.0',
            'flake8>=3.9.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'meltkit=meltkit.cli:main',
        ],
    },
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Science/Research',
        'Topic :: Scientific/Engineering :: Bio-Informatics',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
    ],
    python_requires='>=3.8',
)
