[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "xvkern"
version = "0.1.0"
description = "Teaching-kernel building blocks: x86 paging and descriptors, ELF headers, a free-list allocator, locks, syscall dispatch, a shell parser and wc"
requires-python = ">=3.10"
dependencies = []
keywords = ["kernel", "operating-system", "paging", "x86", "elf", "shell", "education"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: System :: Operating System Kernels",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
xvkern-wc = "xvkern.wc:main"

[tool.hatch.build.targets.wheel]
packages = ["xvkern"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
