from setuptools import setup, find_packages

setup(
    name="hashedit",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "pyyaml",
        # Line hashing (xxHash32)
        "xxhash>=3.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    author="Uday Kanth",
    description="Hash-anchored line edits and fuzzy hunk patching for AI coding agents.",
)
