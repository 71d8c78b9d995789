"""
poolbreaker Setup Configuration
String-array JavaScript deobfuscator with a sandboxed decoder runtime
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="poolbreaker",
    version="0.3.0",
    description="Deobfuscator for string-array + index-decoder JavaScript (jsjiami v7 style)",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Information Technology",
        "Topic :: Security",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Operating System :: POSIX :: Linux",
    ],
    python_requires=">=3.9",
    install_requires=[
        "esprima>=4.0.1",
        "mini-racer>=0.12.0",
        "PyYAML>=6.0",
    ],
    extras_require={
        "api": ["fastapi>=0.104.0", "uvicorn>=0.24.0", "python-multipart>=0.0.6"],
        "test": ["pytest>=7.0", "httpx>=0.25.0", "fastapi>=0.104.0", "python-multipart>=0.0.6"],
        "all": ["fastapi>=0.104.0", "uvicorn>=0.24.0", "python-multipart>=0.0.6"],
    },
    entry_points={
        "console_scripts": [
            "poolbreaker=poolbreaker.cli:main",
        ],
    },
)
