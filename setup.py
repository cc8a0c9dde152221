from setuptools import setup, find_packages

setup(
    name='password_elephant',
    version='0.1.0',
    packages=find_packages(where='src'),
    package_dir={'': 'src'},
    install_requires=[
        'click>=8.0.0',
        'cryptography>=43.0.0',
        'protobuf>=4.25.0',
    ],
    extras_require={
        'test': [
            'pytest>=7.0.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'elephant=password_elephant.cli.commands:main',
        ],
    },
)
