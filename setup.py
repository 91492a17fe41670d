# Copyright © 2025 TAPT

import re
import os
import codecs
from os import path
from io import open
from setuptools import setup, find_packages


here = path.abspath(path.dirname(__file__))

with open(path.join(here, "README.md"), encoding="utf-8") as f:
    long_description = f.read()

with codecs.open(os.path.join(here, "tapt_gateway/__init__.py"), encoding="utf-8") as init_file:
    version_match = re.search(r"^__version__ = ['\"]([^'\"]*)['\"]", init_file.read(), re.M)
    if not version_match:
        raise RuntimeError("Unable to find version string in tapt_gateway/__init__.py")
    version_string = version_match.group(1)


requirements = [
    # Web framework
    "fastapi>=0.110.0",
    "uvicorn>=0.38.0",
    "pydantic>=2.0.0",
    "starlette>=0.30.0",

    # Supabase (rows, auth admin, storage)
    "supabase>=2.0.0",
    "postgrest>=0.13.0",

    # HTTP (reCAPTCHA verification)
    "httpx>=0.28.1",

    # Configuration
    "python-dotenv>=1.0.0",

    # Date handling
    "python-dateutil>=2.8.2",
]

setup(
    name="tapt_portal_gateway",
    version=version_string,
    description="Form submissions, admin back office and period rollover for the TAPT website",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="TAPT Web Team",
    license="MIT",
    packages=find_packages(include=['tapt_gateway', 'tapt_gateway.*']),
    include_package_data=True,
    python_requires=">=3.9",
    install_requires=requirements,
    extras_require={
        "test": [
            "pytest>=7.4.0",
            "httpx>=0.28.1",
        ],
    },
    entry_points={
        "console_scripts": [
            "tapt-gateway=tapt_gateway.main:run",
        ]
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3 :: Only",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Framework :: FastAPI",
        "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    ],
)
