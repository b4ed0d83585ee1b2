from typing import List

from briefsmith.core.schemas import FileType, GeneratedFile
from briefsmith.synthesis.assembler import rebase_imports
from briefsmith.synthesis.templates import optimization as tpl

ARTIFACTS = [
    ("config/database.py", tpl.DATABASE, FileType.CONFIG),
    ("utils/query_builder.py", tpl.QUERY_BUILDER, FileType.OTHER),
    ("utils/cache.py", tpl.CACHE, FileType.OTHER),
    ("utils/db_maintenance.py", tpl.DB_MAINTENANCE, FileType.OTHER),
]


class OptimizationSynthesizer:
    """Emits the fixed database-access layer every backend task shares."""

    def __init__(self, root: str = "app"):
        self.root = root

    def synthesize(self) -> List[GeneratedFile]:
        return [
            GeneratedFile(path=f"{self.root}/{relative}", content=rebase_imports(content, self.root), type=type_)
            for relative, content, type_ in ARTIFACTS
        ]
