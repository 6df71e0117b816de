from setuptools import setup

setup(
    name="texref",
    packages=["texref", "texref.base", "texref.cases"],
    install_requires=[
        "numpy",
    ],
    extras_require={
        "cli": ["click"],
        "test": ["pytest", "click"],
        "docs": ["sphinx"],
    },
    entry_points={
        "console_scripts": [
            "texref=texref.cli:cli_entrypoint",
        ],
    },
    version="0.1.0",
    zip_safe=False,
)
