"""Built-in tool definitions.

Usage:
    from vmgr.tools.definitions import BUILTIN_TOOLS, get_builtin

    for tool in BUILTIN_TOOLS:
        print(f"{tool.name}: {tool.title}")

    java = get_builtin("java")
"""

from __future__ import annotations

from vmgr.tools.definitions.dotnet import DOTNET
from vmgr.tools.definitions.go import GO
from vmgr.tools.definitions.gradle import GRADLE
from vmgr.tools.definitions.java import JAVA
from vmgr.tools.definitions.maven import MAVEN
from vmgr.tools.definitions.node import NODE
from vmgr.tools.definitions.python import PYTHON
from vmgr.tools.definitions.ruby import RUBY
from vmgr.tools.definitions.rust import RUST
from vmgr.tools.definitions.scala import SCALA, SCALA3
from vmgr.tools.descriptor import ToolDescriptor

__all__ = [
    "DOTNET",
    "GO",
    "GRADLE",
    "JAVA",
    "MAVEN",
    "NODE",
    "PYTHON",
    "RUBY",
    "RUST",
    "SCALA",
    "SCALA3",
    "BUILTIN_TOOLS",
    "get_builtin",
]


BUILTIN_TOOLS: tuple[ToolDescriptor, ...] = (
    JAVA,
    NODE,
    GO,
    PYTHON,
    RUBY,
    RUST,
    DOTNET,
    SCALA,
    SCALA3,
    MAVEN,
    GRADLE,
)

_BY_NAME: dict[str, ToolDescriptor] = {tool.name: tool for tool in BUILTIN_TOOLS}


def get_builtin(name: str) -> ToolDescriptor | None:
    return _BY_NAME.get(name)
