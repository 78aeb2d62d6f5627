from setuptools import setup, find_packages


setup(
    name="oak",
    version="0.1",
    packages=find_packages(),
    description="Corruption-detecting, optionally encrypted text encoding for value graphs.",
    author="vercingetorx",
    install_requires=[
        "pycryptodomex>=3.23.0",
        "lz4>=4.0.0",
    ],
    entry_points={
        "console_scripts": [
            "oak=oak.cli:main",
            "enigma=oak.enigma:main",
        ]
    },
)
