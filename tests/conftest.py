import pytest

from opx_apply.filesystem import InMemoryFileSystem
from opx_apply.models import ActionType, ChangeBlock, FileAction


def opx_edit(path: str, op: str, body: str = "", why: str | None = None) -> str:
    """Build one OPX <edit> element."""
    why_xml = f"<why>{why}</why>\n" if why else ""
    return f'<edit file="{path}" op="{op}">\n{why_xml}{body}</edit>\n'


def find_put(search: str, content: str, occurrence: str | None = None) -> str:
    """Build a <find>/<put> pair with literal markers."""
    occ = f' occurrence="{occurrence}"' if occurrence else ""
    return (
        f"<find{occ}>\n<<<\n{search}\n>>>\n</find>\n"
        f"<put>\n<<<\n{content}\n>>>\n</put>\n"
    )


def put(content: str) -> str:
    return f"<put>\n<<<\n{content}\n>>>\n</put>\n"


def modify_action(path: str, *pairs: tuple[str, str], occurrence=None) -> FileAction:
    return FileAction(
        path=path,
        action=ActionType.MODIFY,
        changes=[
            ChangeBlock(description=f"change {i}", search=search, content=content, occurrence=occurrence)
            for i, (search, content) in enumerate(pairs, 1)
        ],
    )


@pytest.fixture
def memory_fs():
    return InMemoryFileSystem(
        {
            "src/app.ts": "const a = 1;\nconst b = 2;\n",
            "src/util.ts": "export const x = 1;\n",
        }
    )


@pytest.fixture
def workspace(tmp_path):
    root = tmp_path / "proj"
    (root / "src").mkdir(parents=True)
    (root / "src" / "app.ts").write_text("const a = 1;\nconst b = 2;\n", encoding="utf-8")
    return root
