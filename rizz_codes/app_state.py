"""
Client-side application state.

A local mirror of server entities plus UI-only state (mode, selection, panel
visibility). Actions are synchronous and never touch the network; fetchers in
`studio_client` feed their results into them. The mirror is not authoritative
and goes stale unless it is re-synchronized after writes.
"""

from typing import Callable, List, Optional

from .file_tree import build_file_tree
from .models import ChatMessage, File, FileTree, Mode, OpenRouterConfig, Project

Listener = Callable[["AppState"], None]


class AppState:
    """Observable state container for the IDE shell."""

    def __init__(self):
        self.current_mode: Mode = "planner"
        self.current_project: Optional[Project] = None
        self.current_file: Optional[File] = None

        self.projects: List[Project] = []
        self.files: List[File] = []
        self.chat_messages: List[ChatMessage] = []
        self.openrouter_config: Optional[OpenRouterConfig] = None

        self.is_loading = False
        self.sidebar_collapsed = False

        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a callback run after every action.

        Returns:
            A callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self):
        for listener in list(self._listeners):
            listener(self)

    # Selection

    def set_current_mode(self, mode: Mode):
        self.current_mode = mode
        self._notify()

    def set_current_project(self, project: Optional[Project]):
        self.current_project = project
        self._notify()

    def set_current_file(self, file: Optional[File]):
        self.current_file = file
        self._notify()

    # Projects

    def set_projects(self, projects: List[Project]):
        self.projects = list(projects)
        self._notify()

    def add_project(self, project: Project):
        self.projects = self.projects + [project]
        self._notify()

    def update_project(self, project: Project):
        self.projects = [project if p.id == project.id else p for p in self.projects]
        if self.current_project is not None and self.current_project.id == project.id:
            self.current_project = project
        self._notify()

    def delete_project(self, project_id: str):
        self.projects = [p for p in self.projects if p.id != project_id]
        if self.current_project is not None and self.current_project.id == project_id:
            self.current_project = None
        self._notify()

    # Files

    def set_files(self, files: List[File]):
        self.files = list(files)
        self._notify()

    def add_file(self, file: File):
        self.files = self.files + [file]
        self._notify()

    def update_file(self, file: File):
        self.files = [file if f.id == file.id else f for f in self.files]
        if self.current_file is not None and self.current_file.id == file.id:
            self.current_file = file
        self._notify()

    def delete_file(self, file_id: str):
        self.files = [f for f in self.files if f.id != file_id]
        if self.current_file is not None and self.current_file.id == file_id:
            self.current_file = None
        self._notify()

    # Chat

    def set_chat_messages(self, messages: List[ChatMessage]):
        self.chat_messages = list(messages)
        self._notify()

    def add_chat_message(self, message: ChatMessage):
        self.chat_messages = self.chat_messages + [message]
        self._notify()

    # Connector and UI

    def set_openrouter_config(self, config: Optional[OpenRouterConfig]):
        self.openrouter_config = config
        self._notify()

    def set_loading(self, loading: bool):
        self.is_loading = loading
        self._notify()

    def toggle_sidebar(self):
        self.sidebar_collapsed = not self.sidebar_collapsed
        self._notify()

    # Selectors

    def file_tree(self) -> FileTree:
        """Explorer tree for the mirrored files."""
        return build_file_tree(self.files)
