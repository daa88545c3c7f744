[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gcptoolbox"
version = "0.1.0"
description = "Helpers for Google Cloud: runtime metadata, Cloud Tasks headers and App Engine tasks, IAP users, Dataflow templates, metrics scopes and IAM troubleshooting."
requires-python = ">=3.10"
dependencies = []
keywords = [
    "google-cloud",
    "gcp",
    "metadata",
    "cloud-tasks",
    "app-engine",
    "cloud-run",
    "iap",
    "dataflow",
    "monitoring",
    "iam",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries :: Python Modules",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["gcptoolbox"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "I", "B", "UP"]
