"""Built-in .gitignore templates and a selectable pattern catalog."""

from dataclasses import dataclass
from typing import Final, TypeAlias

DEFAULT_TEMPLATE: Final = "General"
CUSTOM_TEMPLATE: Final = "Custom"


@dataclass(frozen=True, slots=True)
class GitignorePattern:
    """A selectable group of ignore patterns.

    Attributes:
        id: Stable identifier used for selection.
        label: Short display name.
        description: One-line explanation.
        category: Category key, one of CATEGORY_TITLES.
        patterns: Ignore entries written to the file.
    """

    id: str
    label: str
    description: str
    category: str
    patterns: tuple[str, ...]


CATEGORY_TITLES: Final[dict[str, str]] = {
    "dependencies": "Dependencies",
    "build": "Build Outputs",
    "environment": "Environment & Secrets",
    "ide": "IDE & Editors",
    "os": "Operating System",
    "logs": "Logs",
    "cache": "Cache & Temp",
    "testing": "Testing",
}

_IDE: Final = ("IDE", (".vscode/", ".idea/", "*.swp"))
_OS: Final = ("OS", (".DS_Store", "Thumbs.db"))

_Section: TypeAlias = tuple[str, tuple[str, ...]]

_TEMPLATES: Final[dict[str, tuple[_Section, ...]]] = {
    "Node.js": (
        (
            "Dependencies",
            (
                "node_modules/",
                "npm-debug.log*",
                "yarn-debug.log*",
                "yarn-error.log*",
                "pnpm-debug.log*",
            ),
        ),
        ("Build outputs", ("dist/", "build/", "out/", ".next/", ".nuxt/", ".cache/")),
        ("Environment", (".env", ".env.local", ".env.*.local")),
        ("IDE", (".vscode/", ".idea/", "*.swp", "*.swo", "*~")),
        _OS,
    ),
    "Python": (
        ("Byte-compiled / optimized / DLL files", ("__pycache__/", "*.py[cod]", "*$py.class")),
        ("Virtual environments", ("venv/", "env/", "ENV/", ".venv")),
        ("Distribution / packaging", ("dist/", "build/", "*.egg-info/")),
        _IDE,
        ("Environment", (".env",)),
        _OS,
    ),
    "Rust": (
        ("Build outputs", ("target/", "Cargo.lock")),
        _IDE,
        _OS,
    ),
    "Go": (
        ("Binaries", ("*.exe", "*.exe~", "*.dll", "*.so", "*.dylib")),
        ("Test binary", ("*.test",)),
        ("Output", ("bin/", "dist/")),
        ("Go workspace file", ("go.work",)),
        _IDE,
        _OS,
    ),
    "Java": (
        ("Compiled class files", ("*.class",)),
        ("Package Files", ("*.jar", "*.war", "*.nar", "*.ear", "*.zip", "*.tar.gz", "*.rar")),
        ("Build outputs", ("target/", "build/", "out/")),
        ("IDE", (".vscode/", ".idea/", "*.iml", "*.swp")),
        _OS,
    ),
    ".NET": (
        ("Build outputs", ("bin/", "obj/", "out/")),
        ("User-specific files", ("*.suo", "*.user", "*.userosscache", "*.sln.docstates")),
        ("IDE", (".vscode/", ".vs/", "*.swp")),
        _OS,
    ),
    "Ruby": (
        ("Gems", ("*.gem", ".bundle/", "vendor/bundle/")),
        _IDE,
        _OS,
    ),
    "PHP": (
        ("Composer", ("vendor/", "composer.lock")),
        _IDE,
        ("Environment", (".env",)),
        _OS,
    ),
    "C/C++": (
        ("Compiled Object files", ("*.o", "*.obj", "*.exe", "*.out", "*.app")),
        ("Build directories", ("build/", "cmake-build-*/")),
        _IDE,
        _OS,
    ),
    "Dart/Flutter": (
        (
            "Build outputs",
            (
                "build/",
                ".dart_tool/",
                ".flutter-plugins",
                ".flutter-plugins-dependencies",
                ".packages",
            ),
        ),
        _IDE,
        _OS,
    ),
    "Elixir": (
        ("Build outputs", ("_build/", "deps/", "*.ez")),
        _IDE,
        _OS,
    ),
    "General": (
        ("Build outputs", ("dist/", "build/", "out/")),
        ("Dependencies", ("node_modules/", "vendor/")),
        ("Environment", (".env", ".env.local")),
        ("IDE", (".vscode/", ".idea/", "*.swp", "*.swo", "*~")),
        ("OS", (".DS_Store", "Thumbs.db", "*.log")),
    ),
}

_PATTERNS: Final = (
    GitignorePattern(
        "node_modules",
        "node_modules",
        "Node.js dependencies",
        "dependencies",
        ("node_modules/", "npm-debug.log*", "yarn-debug.log*", "yarn-error.log*", "pnpm-debug.log*"),
    ),
    GitignorePattern(
        "vendor", "vendor", "PHP/Ruby dependencies", "dependencies", ("vendor/", "composer.lock")
    ),
    GitignorePattern(
        "python_venv",
        "Python Virtual Env",
        "Python virtual environments",
        "dependencies",
        ("venv/", "env/", "ENV/", ".venv", "__pycache__/", "*.py[cod]", "*$py.class"),
    ),
    GitignorePattern(
        "rust_target", "Rust target", "Rust build directory", "dependencies", ("target/", "Cargo.lock")
    ),
    GitignorePattern(
        "go_vendor", "Go vendor", "Go dependencies", "dependencies", ("vendor/", "go.work")
    ),
    GitignorePattern(
        "dist", "dist", "Distribution/build output", "build", ("dist/", "build/", "out/")
    ),
    GitignorePattern(
        "next_build", "Next.js build", "Next.js build files", "build", (".next/", ".nuxt/", ".cache/")
    ),
    GitignorePattern(
        "compiled",
        "Compiled files",
        "Compiled binaries and objects",
        "build",
        ("*.exe", "*.dll", "*.so", "*.dylib", "*.o", "*.obj", "*.class", "*.jar", "*.war"),
    ),
    GitignorePattern(
        "dotnet_build", ".NET build", ".NET build outputs", "build", ("bin/", "obj/", "*.suo", "*.user")
    ),
    GitignorePattern(
        "env_files",
        ".env files",
        "Environment variables",
        "environment",
        (".env", ".env.local", ".env.*.local", ".env.development", ".env.production"),
    ),
    GitignorePattern(
        "secrets",
        "Secrets",
        "Secret keys and credentials",
        "environment",
        ("*.key", "*.pem", "*.p12", "secrets.json", "credentials.json"),
    ),
    GitignorePattern(
        "config_local",
        "Local configs",
        "Local configuration files",
        "environment",
        ("config.local.*", "settings.local.*", "*.local.json"),
    ),
    GitignorePattern("vscode", "VS Code", "Visual Studio Code settings", "ide", (".vscode/",)),
    GitignorePattern(
        "idea", "IntelliJ IDEA", "JetBrains IDE settings", "ide", (".idea/", "*.iml", "*.iws", "*.ipr")
    ),
    GitignorePattern("vim", "Vim", "Vim swap files", "ide", ("*.swp", "*.swo", "*~", ".*.swp")),
    GitignorePattern(
        "sublime",
        "Sublime Text",
        "Sublime Text settings",
        "ide",
        ("*.sublime-project", "*.sublime-workspace"),
    ),
    GitignorePattern(
        "visual_studio",
        "Visual Studio",
        "Visual Studio files",
        "ide",
        (".vs/", "*.suo", "*.user", "*.userosscache", "*.sln.docstates"),
    ),
    GitignorePattern(
        "macos", "macOS", "macOS system files", "os", (".DS_Store", ".AppleDouble", ".LSOverride", "._*")
    ),
    GitignorePattern(
        "windows",
        "Windows",
        "Windows system files",
        "os",
        ("Thumbs.db", "ehthumbs.db", "Desktop.ini", "$RECYCLE.BIN/"),
    ),
    GitignorePattern("linux", "Linux", "Linux system files", "os", ("*~", ".directory", ".Trash-*")),
    GitignorePattern("logs", "Log files", "Application logs", "logs", ("*.log", "logs/", "log/", "*.log.*")),
    GitignorePattern(
        "npm_logs",
        "npm logs",
        "npm debug logs",
        "logs",
        ("npm-debug.log*", "yarn-debug.log*", "yarn-error.log*", "lerna-debug.log*"),
    ),
    GitignorePattern(
        "cache", "Cache", "Cache directories", "cache", (".cache/", "cache/", "*.cache", ".parcel-cache/")
    ),
    GitignorePattern("temp", "Temp files", "Temporary files", "cache", ("tmp/", "temp/", "*.tmp", "*.temp")),
    GitignorePattern(
        "coverage",
        "Coverage",
        "Test coverage reports",
        "testing",
        ("coverage/", ".nyc_output/", "*.lcov", "htmlcov/"),
    ),
    GitignorePattern(
        "test_output",
        "Test output",
        "Test result files",
        "testing",
        ("test-results/", "junit.xml", "*.test", "*.spec.js.snap"),
    ),
)


def list_gitignore_templates() -> list[str]:
    """Return template names in display order, ending with Custom."""
    return [*_TEMPLATES, CUSTOM_TEMPLATE]


def list_gitignore_patterns() -> list[GitignorePattern]:
    """Return the selectable pattern catalog."""
    return list(_PATTERNS)


def _render(sections: tuple[_Section, ...]) -> str:
    return "\n\n".join(
        "\n".join((f"# {title}", *entries)) for title, entries in sections
    )


def generate_gitignore_content(template: str) -> str:
    """Render a built-in template.

    Unknown names, including Custom, render the General template.
    """
    sections = _TEMPLATES.get(template.strip()) or _TEMPLATES[DEFAULT_TEMPLATE]
    return _render(sections)


def generate_custom_gitignore_content(pattern_ids: list[str]) -> str:
    """Render the selected catalog patterns grouped by category.

    Categories appear in catalog order. Unknown IDs are ignored, and an
    entry already written under an earlier category or pattern is skipped.

    Args:
        pattern_ids: IDs from list_gitignore_patterns().

    Returns:
        The file content, without trailing whitespace.
    """
    selected = set(pattern_ids)
    grouped: dict[str, list[str]] = {}
    seen: set[str] = set()
    for pattern in _PATTERNS:
        if pattern.id not in selected:
            continue
        entries = grouped.setdefault(pattern.category, [])
        for entry in pattern.patterns:
            if entry not in seen:
                seen.add(entry)
                entries.append(entry)

    sections = [
        (CATEGORY_TITLES.get(category, category), tuple(entries))
        for category, entries in grouped.items()
        if entries
    ]
    body = _render(tuple(sections))
    return f"# Custom .gitignore\n\n{body}".strip()
