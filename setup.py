from setuptools import setup, find_packages


setup(
    name="catdat",
    version="0.1",
    packages=find_packages(include=["catdat", "catdat.*"]),
    description="Read, build and layer numbered .cat/.dat game archives.",
    author="vercingetorx",
    python_requires=">=3.8",
    install_requires=[
        "pycryptodomex>=3.23.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "catdat=catdat.cli:main",
        ]
    },
)
