"""Prompt text teaching a model to answer in OPX."""

OPX_INSTRUCTIONS = """<opx_instructions>

# Role
Answer with OPX: an XML-like list of file edits that will be applied to
the current workspace exactly as written.

# Format
- One <edit> per file operation; several edits may share one <opx>...</opx>
  wrapper.
- <edit> attributes:
  - file="relative/path.ext" (required)
  - op="new|patch|replace|remove|move" (required)
  - root="workspaceRootName" (only for multi-root workspaces)
- <why> (optional) says in one line what the edit does.
- Code goes between a line holding only <<< and a line holding only >>>.

# Operations
- op="new"      create a file. Body: <put> <<< ... >>> </put>
- op="patch"    replace one region. Body: <find [occurrence="first|last|N"]>
                <<< ... >>> </find> followed by <put> <<< ... >>> </put>.
                Several find/put pairs may follow each other; they apply
                top to bottom.
- op="replace"  replace the whole file. Body: <put> <<< ... >>> </put>
- op="remove"   delete the file. The edit may be self-closing.
- op="move"     rename the file. Body: <to file="new/path.ext" />

# Example
<opx>
<edit file="app/settings.py" op="patch">
  <why>Read the timeout from the environment</why>
  <find>
<<<
TIMEOUT = 30
>>>
  </find>
  <put>
<<<
TIMEOUT = int(os.environ.get("APP_TIMEOUT", "30"))
>>>
  </put>
</edit>
<edit file="app/legacy_client.py" op="remove" />
<edit file="app/util.py" op="move">
  <to file="app/helpers.py" />
</edit>
</opx>

# Reliable patches
- Copy <find> text verbatim from the current file, with enough context
  to match exactly once.
- The whole <find> region is replaced by the whole <put> payload.
- A later patch on the same file must match the file AFTER earlier edits.
- Keep the surrounding indentation.

# Paths
- Use workspace-relative paths. Never point outside the workspace.

</opx_instructions>"""


def get_instructions() -> str:
    """Return the OPX prompt instructions."""
    return OPX_INSTRUCTIONS
