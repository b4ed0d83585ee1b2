"""
Artifact path normalization and merging.

Every GeneratedFile leaves the pipeline under its root (`app/` for backend,
`frontend/` for components) in the area its type implies, and no two files
in a merged set share a path.
"""

import posixpath
import re
from typing import Dict, Iterable, List

from briefsmith.core.logger import logger
from briefsmith.core.schemas import FileType, GeneratedFile

_IMPORT_ROOT = re.compile(r"^(\s*)(from|import) app\.", re.MULTILINE)


def rebase_imports(content: str, root: str) -> str:
    """Points `app.` imports inside a generated module at another package root."""
    if root == "app":
        return content
    return _IMPORT_ROOT.sub(lambda m: f"{m.group(1)}{m.group(2)} {root}.", content)


class ArtifactAssembler:
    def infer_type(self, path: str) -> FileType:
        lowered = path.lower()
        if any(k in lowered for k in ("controller", "route", "/api/")):
            return FileType.API
        if any(k in lowered for k in ("model", "schema", "migration", ".sql")):
            return FileType.SCHEMA
        if "config" in lowered or lowered.endswith((".json", ".toml", ".env", ".ini")):
            return FileType.CONFIG
        if "component" in lowered:
            return FileType.COMPONENT
        return FileType.OTHER

    def area_for(self, file: GeneratedFile) -> str:
        lowered = file.path.lower()
        if file.type == FileType.API:
            if "controller" in lowered:
                return "controllers"
            if "route" in lowered:
                return "routes"
            return "api"
        if file.type == FileType.SCHEMA:
            return "models"
        if file.type == FileType.CONFIG:
            return "config"
        if file.type == FileType.COMPONENT:
            return "components"
        return "utils"

    def normalize(self, file: GeneratedFile, root: str) -> GeneratedFile:
        """Rewrites a path that is not under `root/` into root/<area>/<basename>."""
        path = posixpath.normpath(file.path.replace("\\", "/")).lstrip("/")
        if path == root or path.startswith(f"{root}/"):
            if path == file.path:
                return file
            return file.model_copy(update={"path": path})

        new_path = f"{root}/{self.area_for(file)}/{posixpath.basename(path)}"
        logger.debug(f"Rewrote artifact path {file.path} -> {new_path}")
        return file.model_copy(update={"path": new_path})

    def merge(self, file_lists: Iterable[List[GeneratedFile]]) -> List[GeneratedFile]:
        """
        Flattens per-task file lists in order. An exact duplicate (same path
        and content) is dropped; a different file on a taken path is renamed
        to <stem>_<n><suffix>.
        """
        merged: List[GeneratedFile] = []
        by_path: Dict[str, GeneratedFile] = {}

        for files in file_lists:
            for file in files:
                existing = by_path.get(file.path)
                if existing is None:
                    by_path[file.path] = file
                    merged.append(file)
                    continue
                if existing.content == file.content:
                    continue

                renamed = self._free_path(file.path, by_path)
                logger.warning(f"⚠️ Path collision on {file.path}, keeping second copy as {renamed}")
                file = file.model_copy(update={"path": renamed})
                by_path[renamed] = file
                merged.append(file)
        return merged

    def _free_path(self, path: str, taken: Dict[str, GeneratedFile]) -> str:
        head, name = posixpath.split(path)
        stem, suffix = posixpath.splitext(name)
        n = 2
        while True:
            candidate = posixpath.join(head, f"{stem}_{n}{suffix}")
            if candidate not in taken:
                return candidate
            n += 1
