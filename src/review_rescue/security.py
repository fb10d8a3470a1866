from pathlib import Path
import re

from review_rescue.exceptions import ConfigurationError, SecurityError


class SecurityValidator:
    FORBIDDEN_OUTPUT_DIRS = {"/etc", "/sys", "/proc", "/boot", "/dev"}
    SENSITIVE_FILE_PATTERNS = {
        ".ssh/authorized_keys",
        ".ssh/id_rsa",
        ".ssh/id_rsa.pub",
        ".bashrc",
        ".bash_profile",
        ".zshrc",
        ".gitconfig",
        "passwd",
        "shadow",
        "sudoers",
    }
    REPO_PART_PATTERN = re.compile(r"^[a-zA-Z0-9_.-]+$")

    @staticmethod
    def validate_config_path(path: str) -> Path:
        if not path:
            raise ConfigurationError("Config path cannot be empty")

        resolved = Path(path).resolve()
        if not resolved.exists():
            raise ConfigurationError(f"Config file not found: {path}")
        if resolved.is_dir():
            raise ConfigurationError("Config path must be a file, not a directory")
        if resolved.suffix not in {".yaml", ".yml"}:
            raise ConfigurationError("Config file must be .yaml or .yml")

        max_size = 1024 * 1024
        if resolved.stat().st_size > max_size:
            raise ConfigurationError(f"Config file too large (max {max_size} bytes)")

        return resolved

    @staticmethod
    def validate_snapshot_path(path: str | Path) -> Path:
        if not path:
            raise ValueError("Snapshot path cannot be empty")

        expanded_path = Path(path).expanduser()
        resolved = expanded_path.resolve()

        path_str = str(resolved)
        for pattern in SecurityValidator.SENSITIVE_FILE_PATTERNS:
            if pattern in path_str:
                raise SecurityError("Cannot overwrite sensitive file")

        for forbidden in SecurityValidator.FORBIDDEN_OUTPUT_DIRS:
            if path_str == forbidden or path_str.startswith(forbidden + "/"):
                raise SecurityError(f"Cannot write to system directory: {forbidden}")

        if expanded_path.is_symlink():
            raise SecurityError("Symlinks are not allowed for snapshot paths")

        parent = resolved.parent
        if not parent.exists():
            try:
                parent.mkdir(parents=True, exist_ok=True, mode=0o755)
            except PermissionError as e:
                raise SecurityError(
                    f"Cannot create snapshot directory: {parent}"
                ) from e
        if resolved.exists() and not resolved.is_file():
            raise SecurityError("Snapshot path must be a file, not a directory")

        return resolved

    @staticmethod
    def validate_repo(repo: str) -> tuple[str, str]:
        if not repo:
            raise ValueError("Repository cannot be empty")

        repo = repo.strip()
        org, sep, name = repo.partition("/")
        if not sep or not org or not name:
            raise ValueError(f"Invalid repository format: {repo}. Expected org/repo")
        for part in (org, name):
            if not SecurityValidator.REPO_PART_PATTERN.match(part) or ".." in part:
                raise ValueError(f"Invalid repository format: {repo}")

        return org, name

    @staticmethod
    def validate_pr_number(pr_str: str | int) -> int:
        if pr_str == "" or pr_str is None:
            raise ValueError("PR number cannot be empty")

        pr_str = str(pr_str).strip()
        try:
            pr_number = int(pr_str)
        except ValueError as e:
            raise ValueError(f"Invalid PR number format: {pr_str}") from e
        if not 1 <= pr_number <= 2147483647:
            raise ValueError(f"PR number out of valid range: {pr_number}")

        return pr_number

    @staticmethod
    def sanitize_for_logging(text: str) -> str:
        if not text:
            return text
        patterns = [
            # URLs with embedded credentials
            (r"https?://[^:/\s]+:[^@\s]+@[^\s]+", "https://[REDACTED]@..."),
            # GitHub tokens (including malformed)
            (r"gh[pousr]_[A-Za-z0-9]+", "gh_[REDACTED]"),
            (r"github_pat_[A-Za-z0-9_]+", "github_pat_[REDACTED]"),
            # Generic patterns
            (r"(password|token|secret|api_key|apikey)=[^\s]+", r"\1=[REDACTED]"),
            (r"(Authorization):\s*(Bearer|token)\s+[^\s]+", r"\1: [REDACTED]"),
            (r"(Authorization):\s*[^\s]+", r"\1: [REDACTED]"),
            # JWT tokens
            (
                r"eyJ[A-Za-z0-9_\-]+\.eyJ[A-Za-z0-9_\-]+\.[A-Za-z0-9_\-]+",
                "[JWT_REDACTED]",
            ),
        ]

        for pattern, replacement in patterns:
            text = re.sub(pattern, replacement, text, flags=re.IGNORECASE)

        return text

    @staticmethod
    def sanitize_error_message(error: BaseException) -> str:
        return SecurityValidator.sanitize_for_logging(str(error))
