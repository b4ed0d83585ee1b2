from typing import List, Optional, Tuple

from briefsmith.core.schemas import FileType, GeneratedFile, TechnicalTask
from briefsmith.synthesis.keywords import SubstringClassifier, TextClassifier
from briefsmith.synthesis.templates import frontend as tpl

# Matched against the task title only
COMPONENT_FAMILIES: List[Tuple[Tuple[str, ...], List[Tuple[str, str]]]] = [
    (("auth", "login"), [("auth_forms.py", tpl.AUTH_FORMS)]),
    (("task", "todo"), [("task_card.py", tpl.TASK_CARD), ("task_board.py", tpl.TASK_BOARD)]),
    (("shar",), [("share_dialog.py", tpl.SHARE_DIALOG)]),
]

# Components that read the auth token from AuthState
NEEDS_AUTH = {"task_board.py", "share_dialog.py"}


class FrontendSynthesizer:
    def __init__(self, classifier: Optional[TextClassifier] = None, root: str = "frontend"):
        self.classifier = classifier or SubstringClassifier()
        self.root = root

    def synthesize(self, task: TechnicalTask) -> List[GeneratedFile]:
        names: List[str] = []
        contents = {}
        for keywords, components in COMPONENT_FAMILIES:
            if self.classifier.matches(task.title, keywords):
                for name, content in components:
                    names.append(name)
                    contents[name] = content

        if not names:
            return []

        if NEEDS_AUTH.intersection(names) and "auth_forms.py" not in contents:
            names.insert(0, "auth_forms.py")
            contents["auth_forms.py"] = tpl.AUTH_FORMS
        names.append("api_client.py")
        contents["api_client.py"] = tpl.API_CLIENT

        return [
            GeneratedFile(path=f"{self.root}/components/{name}", content=contents[name], type=FileType.COMPONENT)
            for name in names
        ]
