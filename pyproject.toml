[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "cbtools"
version = "0.1.0"
description = "Evaluation metrics, hypothesis tests, loss and transfer functions, bagging ensembles and tail statistics for computational biology"
requires-python = ">=3.10"
keywords = ["bioinformatics", "evaluation", "auc", "fmax", "fisher-test", "t-test", "cafa"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: Bio-Informatics",
]
dependencies = [
    "numpy",
    "scipy",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
tail-stat = "cbtools.tailstat:main"
cb-fisher = "cbtools.tools:fisher_main"
cb-quantile = "cbtools.tools:quantile_main"
cb-auc = "cbtools.tools:auc_main"

[tool.hatch.build.targets.wheel]
packages = ["cbtools"]

[tool.pytest.ini_options]
addopts = "-ra"
