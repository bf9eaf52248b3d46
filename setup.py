from setuptools import setup, find_namespace_packages

setup(
    name="ipainspect",
    version="0.1.0",
    packages=find_namespace_packages(include=["ipainspect", "ipainspect.*"]),
    include_package_data=True,
    python_requires=">=3.9",
    install_requires=[
        "rich",
        "python-dotenv",
        "toml",
        "rich-argparse",
        "asn1crypto",
        "lief",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "ipainspect=ipainspect.cli:main",
        ],
    },
)
