[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "trojanproxy"
version = "0.1.0"
description = "Core of a trojan-protocol proxy: config loading, option handling, relaying, redirection, traffic records, geodata decoding and logging."
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
]
keywords = ["proxy", "trojan", "tunnel", "relay", "geoip", "geosite", "logging"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: Proxy Servers",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
trojanproxy = "trojanproxy.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["trojanproxy"]

[tool.pytest.ini_options]
addopts = "-ra"
