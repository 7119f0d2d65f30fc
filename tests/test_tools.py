"""Tests for the file and system tool groups."""

import pytest

from ai_helper import __version__
from ai_helper.exceptions import PathTraversalError, ToolExecutionError
from ai_helper.core import ToolExecutor
from ai_helper.core.memory_manager import MemoryManager
from ai_helper.tools.file_tools import FileTools, configure_allowed_paths
from ai_helper.tools.system_tools import SystemTools
from ai_helper.types import ToolCall


@pytest.fixture
def sandbox(tmp_path):
    configure_allowed_paths([str(tmp_path)])
    (tmp_path / "notes.txt").write_text("Hello World")
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "main.py").write_text("print('hi')\n")
    yield tmp_path
    configure_allowed_paths(None)


def tool(group, name):
    return group.function_registry()[name]


class TestFileTools:
    """Tests for file tools with path validation."""

    def test_group_functions(self):
        assert [t.name for t in FileTools.tool_classes()] == ["list_directory", "read_file", "file_info"]

    def test_read_file(self, sandbox):
        assert tool(FileTools, "file_tools__read_file").execute(path="notes.txt") == "Hello World"

    def test_read_file_truncates(self, sandbox):
        result = tool(FileTools, "file_tools__read_file").execute(path="notes.txt", max_chars=5)
        assert result.startswith("Hello\n... [truncated, 6 more characters]")

    def test_list_directory(self, sandbox):
        entries = tool(FileTools, "file_tools__list_directory").execute(path=str(sandbox))
        assert {"name": "src", "type": "directory", "size": None} in entries
        assert {"name": "notes.txt", "type": "file", "size": 11} in entries

    def test_list_directory_with_pattern(self, sandbox):
        entries = tool(FileTools, "file_tools__list_directory").execute(path="src", pattern="*.py")
        assert [entry["name"] for entry in entries] == ["main.py"]

    def test_file_info(self, sandbox):
        info = tool(FileTools, "file_tools__file_info").execute(path="notes.txt")
        assert info["type"] == "file"
        assert info["size"] == 11

    def test_path_traversal_blocked(self, sandbox):
        with pytest.raises(PathTraversalError):
            tool(FileTools, "file_tools__read_file").execute(path="/etc/passwd")

    def test_errors_surface_through_executor(self, sandbox):
        executor = ToolExecutor(FileTools.tool_classes())
        call = ToolCall(id="1", name="file_tools__read_file", arguments={"path": "missing.txt"})
        with pytest.raises(ToolExecutionError):
            executor.execute_tool_calls([call], MemoryManager())

    def test_executor_records_result(self, sandbox):
        executor = ToolExecutor(FileTools.tool_classes())
        memory = MemoryManager()
        call = ToolCall(id="1", name="file_tools__read_file", arguments={"path": "notes.txt"})
        executor.execute_tool_calls([call], memory)
        assert memory.last_message().content == "Hello World"
        assert memory.last_message().tool_call_id == "1"


class TestSystemTools:
    """Tests for system information tools."""

    def test_system_info(self):
        info = tool(SystemTools, "system_tools__get_system_info").execute()
        assert info["ai_helper"]["version"] == __version__
        assert info["python"]["version"]

    def test_list_packages_filter(self):
        packages = tool(SystemTools, "system_tools__list_packages").execute(name_filter="pytest")["packages"]
        assert "pytest" in {name.lower() for name in packages}
        assert all("pytest" in name.lower() for name in packages)

    def test_list_agents(self, global_registry):
        agents = tool(SystemTools, "system_tools__list_agents").execute()["agents"]
        assert "leader_agent" in agents
        assert "file_agent" in agents
