#  -*- coding: utf-8 -*-
"""
Setuptools script for the fritzbox-exporter project.
"""

import os
from textwrap import fill, dedent

from setuptools import setup, find_packages


def required(fname):
    with open(os.path.join(os.path.dirname(__file__), fname)) as req_f:
        return [line for line in req_f.read().split('\n') if line.strip()]


setup(
    name="fritzbox-exporter",
    version="0.1.0",
    packages=find_packages(
        exclude=[
            "*.tests",
            "*.tests.*",
            "tests.*",
            "tests",
        ]
    ),
    scripts=[],
    include_package_data=True,
    install_requires=required('requirements.txt'),
    extras_require={
        'test': ['pytest', 'mock'],
    },
    entry_points={
        'console_scripts': [
            'fritzbox-exporter = fritzexporter.__main__:main',
        ],
    },
    python_requires='>=3.7',
    zip_safe=False,
    description=fill(dedent("""\
        Prometheus exporter for FRITZ!Box gateways over TR-064 (UPnP) and Lua.
    """)),
    classifiers=[
        "Programming Language :: Python :: 3",
        "Intended Audience :: System Administrators",
        "License :: OSI Approved :: MIT License",
        "Natural Language :: English",
        "Operating System :: OS Independent",
        "Topic :: Home Automation",
        "Topic :: System :: Monitoring",
        "Topic :: System :: Networking"
    ],
    license="MIT",
    keywords="upnp tr-064 prometheus exporter fritzbox",
)
