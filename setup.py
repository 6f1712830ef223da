from setuptools import setup, find_packages

setup(
    name="spongewallet",
    version="0.2.0",
    author="SpongeWallet",
    description="Python SDK for SpongeWallet - wallets for AI agents",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    url="https://docs.spongewallet.com",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={"spongewallet": ["tool_definitions.json"]},
    install_requires=[
        "httpx>=0.24",
        "pydantic>=2.5",
        "python-dotenv>=1.0",
        "typer>=0.9",
        "rich>=13.0",
        "pyperclip>=1.8",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
        ],
    },
    entry_points={
        "console_scripts": [
            "spongewallet=spongewallet.cli:main",
        ],
    },
    python_requires=">=3.9",
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
)
