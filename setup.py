from setuptools import setup, find_packages


setup(
    name="obby",
    version="0.1",
    packages=find_packages(include=["obby", "obby.*"]),
    description="Reader for .obby plugin archives: list, extract and verify entries.",
    author="vercingetorx",
    python_requires=">=3.8",
    install_requires=[
        "pycryptodomex>=3.23.0",
    ],
    entry_points={
        "console_scripts": [
            "obby=obby.cli:main",
        ]
    },
)
