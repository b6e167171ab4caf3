#!/usr/bin/env python3

from setuptools import find_packages, setup

from ccmupdates import __version__

setup(
    name="ccmupdates",
    description="Configuration Manager pending update poller",
    long_description="Command-line client listing the pending software updates "
    + "of Configuration Manager clients over WS-Management or DCOM.",
    version=str(__version__),
    python_requires=">=3.11",
    install_requires=["pywinrm", "impacket", "requests", "pyxdg", "ruamel.yaml"],
    include_package_data=True,
    extras_require={"keyring": ["keyring"], "test": ["pytest"]},
    license="License :: Other/Proprietary License",
    platforms=["Linux"],
    keywords=["Configuration Manager", "Windows", "update", "WinRM", "WMI"],
    packages=find_packages(exclude=["*.tests", "*.tests.*", "tests.*", "tests"]),
    entry_points={"console_scripts": ["ccmupdates = ccmupdates.main:main"]},
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: POSIX :: Linux",
        "Environment :: Console",
    ],
)
