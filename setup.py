from setuptools import setup, find_packages

setup(
    name="openmessaging-benchmark-driver-pulsar",
    version="0.1.0",
    packages=find_packages(include=['pulsar_benchmark', 'pulsar_benchmark.*']),
    install_requires=[
        'pyyaml>=5.1',
        'pydantic>=2.0',
        'pulsar-client>=3.4.0',
        'requests>=2.25.0',
        'click>=8.0',
        'rich>=12.0',
    ],
    extras_require={
        'test': [
            'pytest>=7.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'pulsar-benchmark-driver=pulsar_benchmark.cli:main',
        ],
    },
    python_requires='>=3.8',
)
