from setuptools import setup, find_packages

setup(
    name="symexec",
    version="0.1.0",
    description="SYMEXEC — DNF path conditions for static symbolic execution",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "z3-solver>=4.12.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "hypothesis>=6.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "symexec=symexec.cli:main",
        ],
    },
)
