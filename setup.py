from setuptools import find_packages, setup

setup(
    name="pod-orchestrator",
    version="0.1.0",
    packages=find_packages(
        include=[
            "pod_common",
            "pod_common.*",
            "pod_persistence",
            "pod_persistence.*",
            "pod_controller",
            "pod_controller.*",
            "pod_server",
            "pod_server.*",
            "pod_client",
            "pod_client.*",
            "pod_admin",
            "pod_admin.*",
        ]
    ),
    install_requires=[
        "requests>=2.31.0",
        "fastapi>=0.104.0",
        "pydantic>=2.0",
        "uvicorn>=0.24.0",
        "click>=8.1.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
            "httpx>=0.25.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "podctl=pod_client.cli:main",
            "pod-server=pod_server.__main__:main",
            "pod-admin=pod_admin.cli:cli",
        ],
    },
    python_requires=">=3.11",
)
