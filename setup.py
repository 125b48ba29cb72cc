from setuptools import setup, find_namespace_packages

setup(
    name="diaglog",
    version="0.3.0b0",
    description="Multi-channel diagnostic logging — level gates, sink redirection, log files and startup buffering",
    author="Dustin",
    author_email="6962246+djdarcy@users.noreply.github.com",
    package_dir={"": "src"},
    packages=find_namespace_packages(where="src", include=["diaglog*"]),
    install_requires=[],
    extras_require={
        "test": ["pytest>=7"],
    },
    entry_points={
        "console_scripts": [
            "diaglog=diaglog.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: GNU General Public License v3 (GPLv3)",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: System :: Logging",
    ],
    python_requires=">=3.10",
)
