"""
Setup file.
"""

from setuptools import find_packages, setup

URL = "https://github.com/protoforge/protoforge"
KEYWORDS = "protobuf protoc cmake codegen toolchain build cache conformance"


if __name__ == "__main__":
    setup(
        name="protoforge",
        version="0.1.0",
        description="Build protobuf from source once per version and generate code from its schemas",
        keywords=KEYWORDS,
        url=URL,
        python_requires=">=3.9",
        package_dir={"": "src"},
        packages=find_packages(where="src"),
        install_requires=[
            "psutil",
            "protobuf>=4.21",
        ],
        extras_require={
            "test": ["pytest"],
        },
        entry_points={
            "console_scripts": [
                "protoforge=protoforge.cli:main",
            ],
        },
    )
