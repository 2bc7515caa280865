from setuptools import setup, find_packages

setup(
    name="chatsink",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "click",
        "python-dotenv",
        "pydantic>=2",
        "google-cloud-bigquery",
        "google-api-core",
        "google-auth",
        "rich",
        "toml"
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "chatsink = chatsink.main:start_cli",
        ],
    },
    author="Joel M",
    author_email="jtmcn.dev@gmail.com",
    description="Topology-aware BigQuery sink for chatbot analytics events.",
    license="MIT",
    keywords="bigquery analytics chatbot",
)
