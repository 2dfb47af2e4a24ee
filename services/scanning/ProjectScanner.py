import os
import re

import pathspec

from services.extraction.languages import supported_extensions
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import FileEntry


IGNORE_FILES = (".gitignore", ".ignore")
ALWAYS_PRUNED = frozenset({".git"})


def collection_name_for_root(root: str) -> str:
    """Derive a collection name from a root directory's base name.

    Lower-case ASCII letters and digits are kept, every other character
    becomes "-", and leading/trailing dashes are trimmed. E.g.
    "/src/My Project" gives "my-project".
    """
    base = os.path.basename(os.path.normpath(os.path.abspath(root)))
    slug = re.sub(r"[^a-z0-9]", "-", base.lower()).strip("-")
    return slug or "code-index"


class ProjectScanner:
    """Walks a project root and hands out the source files of each repository.

    Ignore files (.gitignore, .ignore) are honored at every directory level;
    patterns of a nested file apply relative to its own directory. The .git
    directory is always skipped, and so are symlinks.
    """

    def __init__(self, helper_config: HelperConfig, extra_patterns: list[str] | None = None, extensions: set[str] | None = None) -> None:
        self.logging = helper_config.get_logger()
        self._extra_spec = pathspec.GitIgnoreSpec.from_lines(extra_patterns) if extra_patterns else None
        self.extensions = {ext.lower().lstrip(".") for ext in (extensions or supported_extensions())}

    ##########################################
    ############### CORE #####################
    ##########################################

    def scan_project(self, root: str) -> list[str]:
        """List the top-level repository directories below root.

        Returns:
            list[str]: Absolute paths, sorted by name. Ignored and hidden VCS
                directories are left out.

        Raises:
            NotADirectoryError: If root is not a directory.
        """
        root = os.path.abspath(root)
        if not os.path.isdir(root):
            raise NotADirectoryError(f"Index root '{root}' is not a directory")

        root_specs = self._load_ignore_specs(root, "")
        directories = []
        for name in sorted(os.listdir(root)):
            path = os.path.join(root, name)
            if name in ALWAYS_PRUNED or os.path.islink(path) or not os.path.isdir(path):
                continue
            if self._is_ignored(f"{name}/", root_specs):
                continue
            directories.append(path)
        return directories

    def scan_repo(self, repo_root: str, repo_name: str | None = None) -> list[FileEntry]:
        """Collect every supported source file of a repository.

        Args:
            repo_root (str): The repository directory.
            repo_name (str | None): Name recorded on each entry; defaults to the directory name.

        Returns:
            list[FileEntry]: Entries with slash-separated paths relative to repo_root,
                in a stable (sorted) walk order.
        """
        repo_root = os.path.abspath(repo_root)
        repo_name = repo_name or os.path.basename(repo_root)
        entries: list[FileEntry] = []
        skipped = 0

        # (directory relative to repo_root, spec) pairs active for the current walk position
        specs: list[tuple[str, pathspec.PathSpec]] = []

        for current, dirs, files in os.walk(repo_root, followlinks=False):
            rel_dir = os.path.relpath(current, repo_root).replace(os.sep, "/")
            rel_dir = "" if rel_dir == "." else rel_dir

            # drop specs of directories we have left, add the ones of this directory
            specs = [(base, spec) for base, spec in specs if _is_within(rel_dir, base)]
            specs.extend(self._load_ignore_specs(current, rel_dir))

            dirs[:] = sorted(
                d for d in dirs
                if d not in ALWAYS_PRUNED
                and not os.path.islink(os.path.join(current, d))
                and not self._is_ignored(_join(rel_dir, d) + "/", specs)
            )

            for name in sorted(files):
                rel_path = _join(rel_dir, name)
                extension = os.path.splitext(name)[1].lower().lstrip(".")
                if extension not in self.extensions or self._is_ignored(rel_path, specs):
                    continue
                full_path = os.path.join(current, name)
                if os.path.islink(full_path):
                    continue
                try:
                    with open(full_path, encoding="utf-8") as f:
                        source = f.read()
                except (UnicodeDecodeError, OSError) as e:
                    self.logging.warning("Skipping '%s/%s': %s", repo_name, rel_path, e)
                    skipped += 1
                    continue
                entries.append(FileEntry(repo=repo_name, file_path=rel_path, source=source))

        self.logging.info(
            "Scanned repository '%s': %d source file(s), %d unreadable.",
            repo_name, len(entries), skipped,
        )
        return entries

    ##########################################
    ############### HELPERS ##################
    ##########################################

    def _load_ignore_specs(self, directory: str, rel_dir: str) -> list[tuple[str, pathspec.PathSpec]]:
        loaded = []
        if rel_dir == "" and self._extra_spec is not None:
            loaded.append(("", self._extra_spec))
        for ignore_name in IGNORE_FILES:
            ignore_path = os.path.join(directory, ignore_name)
            if not os.path.isfile(ignore_path):
                continue
            try:
                with open(ignore_path, encoding="utf-8") as f:
                    loaded.append((rel_dir, pathspec.GitIgnoreSpec.from_lines(f.read().splitlines())))
            except (UnicodeDecodeError, OSError) as e:
                self.logging.warning("Could not read ignore file '%s': %s", ignore_path, e)
        return loaded

    @staticmethod
    def _is_ignored(rel_path: str, specs: list[tuple[str, pathspec.PathSpec]]) -> bool:
        for base, spec in specs:
            local_path = rel_path[len(base) + 1:] if base else rel_path
            if spec.match_file(local_path):
                return True
        return False


def _join(rel_dir: str, name: str) -> str:
    return f"{rel_dir}/{name}" if rel_dir else name


def _is_within(rel_dir: str, base: str) -> bool:
    return base == "" or rel_dir == base or rel_dir.startswith(base + "/")
