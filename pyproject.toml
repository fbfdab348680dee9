[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "nemusdb"
version = "0.1.0"
description = "Monitor-side debugger toolkit: expression evaluator, watchpoints, command loop and build helpers"
requires-python = ">=3.10"
dependencies = []
keywords = ["debugger", "emulator", "watchpoint", "expression", "monitor", "fixdep"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Debuggers",
    "Topic :: Software Development :: Build Tools",
    "Topic :: System :: Emulators",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
nemusdb-fixdep = "nemusdb.fixdep:main"
nemusdb-gen-expr = "nemusdb.genexpr:main"

[tool.hatch.build.targets.wheel]
packages = ["nemusdb"]

[tool.pytest.ini_options]
addopts = "-ra"
