from setuptools import setup, find_packages

setup(
    name="aws-discovery",
    version="0.1.0",
    description="aws-discovery: query AWS resources as linked infrastructure graph items",
    author="aws-discovery",
    python_requires=">=3.9",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["aws_discovery"],
    install_requires=[
        "pyyaml>=6.0",
        "boto3>=1.34.0",
        "botocore>=1.34.0",
    ],
    extras_require={
        "dev": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "aws-discovery=aws_discovery:main",
        ],
    },
)
