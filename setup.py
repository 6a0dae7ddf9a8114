from setuptools import setup, find_packages

setup(
    name='brkgalab',
    version='1.0',
    description='Biased random-key genetic algorithm for black-box maximization',
    license='GNU GENERAL PUBLIC LICENSE v2',
    package_dir={"": "src"},
    packages=find_packages(where="src", include=["brkgalab", "brkgalab.*"]),
    python_requires=">=3.8",
    install_requires=[
        "configargparse>=1.5.3",
        "numpy>=1.20",
        "pandas>=1.5.0",
        "matplotlib>=3.6.1",
        "tqdm>=4.64.1",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    classifiers=[
        'Programming Language :: Python :: 3',
    ],
)
