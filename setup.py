from setuptools import setup

setup(
    name="dissect.regexport",
    version="1.0.0",
    packages=["dissect.regexport"],
    install_requires=[
        "dissect.cstruct>=4,<5",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
)
