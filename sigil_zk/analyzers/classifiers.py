"""
Data-driven keyword classifiers.

Every heuristic "does this text look like X" test in the analyzers goes
through a KeywordClassifier built from one of the tables below. Tables map
a label to the lowercase keywords that select it; a text is tagged with a
label when any of its keywords occurs in the lowercased text.

Tables can be overridden from YAML:

    leadership:
      architectural: [architect, design, refactor, restructure, rfc]
    domains:
      robotics: [ros, robot, lidar]

Overrides replace whole labels and add new ones; labels not mentioned keep
their defaults.
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional, Sequence, Set, Tuple, Union

import yaml

from ..circuits.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

Table = Dict[str, Tuple[str, ...]]


# ============================================================================
# DEFAULT TABLES
# ============================================================================

LEADERSHIP_KEYWORDS: Table = {
    "architectural": ("architect", "design", "refactor", "restructure"),
    "mentorship": ("help", "fix", "guide", "teach"),
    "process": ("ci", "docker", "workflow", "makefile", "config"),
    "documentation": ("readme", "doc", "wiki", "guide"),
    "code_review": ("merge", "review"),
    "project_management": ("milestone", "release", "version", "roadmap"),
    "innovation": ("new", "experimental", "prototype", "innovate"),
    "team_building": ("onboard", "welcome", "setup", "getting started"),
    "technical": ("architect", "design", "refactor", "optimize"),
    "assistance": ("fix", "help"),
}

# Per language: framework names recognised in file paths.
FRAMEWORK_KEYWORDS: Table = {
    "JavaScript": (
        "react", "vue", "angular", "svelte", "next", "nuxt", "gatsby",
        "express", "koa", "fastify", "nest", "meteor", "ember",
        "webpack", "vite", "rollup", "parcel", "jest", "mocha", "cypress",
    ),
    "TypeScript": (
        "react", "vue", "angular", "svelte", "next", "nuxt",
        "express", "nest", "fastify", "typeorm", "prisma",
    ),
    "Python": (
        "django", "flask", "fastapi", "tornado", "pyramid", "bottle",
        "tensorflow", "pytorch", "keras", "scikit-learn", "pandas", "numpy",
        "celery", "gunicorn", "uvicorn", "pytest", "unittest",
    ),
    "Java": (
        "spring", "hibernate", "junit", "maven", "gradle", "tomcat",
        "struts", "jsf", "wicket", "play", "dropwizard", "micronaut",
    ),
    "C#": (
        "dotnet", "aspnet", "entity", "xamarin", "unity", "nunit",
        "moq", "autofac", "newtonsoft", "serilog",
    ),
    "C++": ("boost", "qt", "opencv", "eigen", "catch2", "gtest", "cmake", "conan", "vcpkg"),
    "Rust": ("tokio", "serde", "diesel", "actix", "rocket", "warp", "clap", "structopt", "cargo"),
    "Go": ("gin", "echo", "fiber", "gorilla", "gorm", "cobra", "viper", "testify", "gomock"),
    "Swift": ("swiftui", "uikit", "combine", "vapor", "perfect", "kitura"),
    "Solidity": ("hardhat", "truffle", "foundry", "openzeppelin", "web3", "ethers", "ganache", "remix"),
}

# Portfolio-level framework families, matched against repository names.
FRAMEWORK_CATEGORY_KEYWORDS: Table = {
    "frontend": ("react", "vue", "angular", "svelte", "next.js", "nuxt.js"),
    "backend": ("express", "django", "rails", "spring", "laravel", "fastapi"),
    "mobile": ("flutter", "react native", "ionic", "xamarin"),
    "ml": ("tensorflow", "pytorch", "scikit-learn", "keras"),
    "testing": ("jest", "mocha", "pytest", "junit", "cypress"),
    "cloud": ("aws", "azure", "gcp", "serverless", "cloudformation"),
}

DOMAIN_KEYWORDS: Table = {
    "web-development": ("react", "vue", "angular", "express", "django", "rails", "laravel"),
    "mobile-development": ("ios", "android", "flutter", "react-native", "xamarin"),
    "data-science": ("pandas", "numpy", "tensorflow", "pytorch", "scikit-learn", "jupyter"),
    "machine-learning": ("ml", "ai", "neural", "deep-learning", "nlp", "computer-vision"),
    "blockchain": ("ethereum", "bitcoin", "solidity", "web3", "defi", "smart-contract"),
    "devops": ("docker", "kubernetes", "terraform", "ansible", "jenkins", "ci-cd"),
    "security": ("cryptography", "penetration", "security", "vulnerability", "encryption"),
    "game-development": ("unity", "unreal", "godot", "game-engine", "graphics"),
    "systems": ("operating-system", "compiler", "database", "networking", "embedded"),
    "fintech": ("trading", "payment", "banking", "financial", "accounting"),
    "healthcare": ("medical", "health", "bioinformatics", "clinical", "pharmaceutical"),
    "education": ("learning", "educational", "course", "tutorial", "academic"),
}

PROJECT_TYPE_KEYWORDS: Table = {
    "library": ("lib", "package", "sdk"),
    "application": ("app", "client", "server"),
    "tool": ("tool", "cli", "util"),
    "framework": ("framework", "boilerplate", "template"),
    "experimental": ("experiment", "research", "prototype"),
}

COMPLEXITY_KEYWORDS: Table = {
    "algorithm": ("sort", "search", "graph", "tree", "hash", "dynamic"),
    "systems": ("kernel", "driver", "embedded", "realtime", "concurrent"),
    "crypto": ("encryption", "hash", "signature", "key", "cipher", "merkle"),
    "ai_ml": ("neural", "model", "training", "inference", "tensor", "gradient"),
    "compiler": ("parser", "lexer", "ast", "optimizer", "codegen", "llvm"),
    "blockchain": ("consensus", "mining", "validator", "smart", "defi", "nft"),
    "distributed": ("cluster", "consensus", "raft", "gossip", "sharding"),
    "graphics": ("shader", "render", "mesh", "texture", "lighting", "gpu"),
}

DESIGN_PATTERN_KEYWORDS: Table = {
    "factory_pattern": ("factory",),
    "singleton_pattern": ("singleton",),
    "observer_pattern": ("observer",),
    "strategy_pattern": ("strategy",),
    "adapter_pattern": ("adapter",),
    "mvc_pattern": ("controller",),
    "service_layer": ("service",),
    "repository_pattern": ("repository",),
    "middleware_pattern": ("middleware",),
    "testing": ("test", "spec"),
    "mocking": ("mock",),
}

INNOVATION_KEYWORDS: Table = {
    "indicator": ("experimental", "prototype", "research", "novel", "innovative"),
    "emerging": (
        "web3", "defi", "nft", "metaverse", "ai", "ml", "blockchain",
        "quantum", "edge-computing", "serverless", "microservices",
        "rust", "zig", "webassembly", "graphql", "jamstack",
    ),
}

# Commit message intent, used for the contribution-type diversity dimension.
CONTRIBUTION_TYPE_KEYWORDS: Table = {
    "feature": ("add", "implement", "feat", "introduce", "support"),
    "bugfix": ("fix", "bug", "patch", "resolve"),
    "documentation": ("doc", "readme", "comment", "typo"),
    "testing": ("test", "spec", "coverage"),
    "refactoring": ("refactor", "cleanup", "clean up", "restructure", "rename"),
    "performance": ("perf", "optimiz", "speed", "faster", "cache"),
    "infrastructure": ("ci", "build", "deploy", "docker", "pipeline"),
    "dependencies": ("bump", "upgrade", "dependency", "dependencies"),
}

DEFAULT_TABLES: Dict[str, Table] = {
    "leadership": LEADERSHIP_KEYWORDS,
    "frameworks": FRAMEWORK_KEYWORDS,
    "framework_categories": FRAMEWORK_CATEGORY_KEYWORDS,
    "domains": DOMAIN_KEYWORDS,
    "project_types": PROJECT_TYPE_KEYWORDS,
    "complexity": COMPLEXITY_KEYWORDS,
    "design_patterns": DESIGN_PATTERN_KEYWORDS,
    "innovation": INNOVATION_KEYWORDS,
    "contribution_types": CONTRIBUTION_TYPE_KEYWORDS,
}


# ============================================================================
# CLASSIFIER
# ============================================================================


class KeywordClassifier:
    """
    Tags free text with the labels whose keywords it contains.

    Example:
        >>> c = KeywordClassifier({"docs": ["readme", "doc"]})
        >>> c.classify("Update README.md")
        {'docs'}
    """

    def __init__(self, table: Mapping[str, Iterable[str]], name: str = ""):
        self.name = name
        self.table: Table = {}
        for label, keywords in table.items():
            if isinstance(keywords, str):
                raise ConfigurationError(
                    f"classifier {name or '<anonymous>'!r}: keywords for {label!r} "
                    "must be a list, not a string"
                )
            self.table[str(label)] = tuple(str(k).lower() for k in keywords)

    @property
    def labels(self) -> Tuple[str, ...]:
        return tuple(self.table)

    def keywords(self, label: str) -> Tuple[str, ...]:
        return self.table.get(label, ())

    def classify(self, text: str) -> Set[str]:
        lowered = (text or "").lower()
        return {
            label
            for label, keywords in self.table.items()
            if any(k in lowered for k in keywords)
        }

    def matches(self, text: str, label: Optional[str] = None) -> Set[str]:
        """Keywords found in text, for one label or for all of them."""
        lowered = (text or "").lower()
        tables = [self.keywords(label)] if label is not None else self.table.values()
        return {k for keywords in tables for k in keywords if k in lowered}

    def match_count(self, text: str) -> int:
        """Number of (label, keyword) pairs found in text."""
        lowered = (text or "").lower()
        return sum(
            1 for keywords in self.table.values() for k in keywords if k in lowered
        )

    def count(self, texts: Iterable[str], label: str) -> int:
        """How many of the texts carry the label."""
        keywords = self.keywords(label)
        return sum(
            1 for t in texts if any(k in (t or "").lower() for k in keywords)
        )

    def with_overrides(self, overrides: Mapping[str, Sequence[str]]) -> "KeywordClassifier":
        merged: Dict[str, Iterable[str]] = dict(self.table)
        merged.update(overrides)
        return KeywordClassifier(merged, name=self.name)

    @classmethod
    def default(cls, name: str) -> "KeywordClassifier":
        if name not in DEFAULT_TABLES:
            raise ConfigurationError(
                f"Unknown classifier table {name!r}; expected one of "
                f"{', '.join(sorted(DEFAULT_TABLES))}"
            )
        return cls(DEFAULT_TABLES[name], name=name)

    @classmethod
    def from_yaml(cls, path: Union[str, Path], name: str) -> "KeywordClassifier":
        """Default table `name` with the overrides found in a YAML file."""
        return load_classifiers(path)[name]

    def __repr__(self) -> str:
        return f"KeywordClassifier({self.name!r}, labels={len(self.table)})"


def load_classifiers(path: Optional[Union[str, Path]] = None) -> Dict[str, KeywordClassifier]:
    """
    Build every classifier, applying YAML overrides when a path is given.

    Raises:
        ConfigurationError: If the file is not a mapping of table ->
            label -> keyword list, or names an unknown table
    """
    classifiers = {name: KeywordClassifier.default(name) for name in DEFAULT_TABLES}
    if path is None:
        return classifiers

    with open(path, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: classifier overrides must be a mapping")

    for name, overrides in data.items():
        if name not in classifiers:
            raise ConfigurationError(f"{path}: unknown classifier table {name!r}")
        if not isinstance(overrides, dict):
            raise ConfigurationError(f"{path}: table {name!r} must map labels to keyword lists")
        classifiers[name] = classifiers[name].with_overrides(overrides)
        logger.debug("classifier %s: %d labels overridden from %s", name, len(overrides), path)
    return classifiers
