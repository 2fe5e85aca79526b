"""
Knowledge management: the copy of a project's schema the backend keeps in
its vector store for answering chat questions.
"""
import logging

from rich.panel import Panel

from dbchat.core.models import DatabaseSchema
from dbchat.ui.components import render_schema
from dbchat.ui.router import AppContext

logger = logging.getLogger(__name__)

HELP = "[dim]ingest · ingest --clear · update · view · delete · back[/dim]"


class KnowledgeManager:
    def __init__(self, ctx: AppContext, project_id: int):
        self.ctx = ctx
        self.project_id = project_id

    def ingest(self, clear_existing: bool = False) -> bool:
        with self.ctx.busy("Ingesting schema..."):
            response = self.ctx.api.ingest_schema(self.project_id, clear_existing=clear_existing)
        if self._succeeded(response):
            count = response.data.tables_ingested
            logger.info(f"Ingested schema for project {self.project_id} (clear_existing={clear_existing})")
            suffix = f" ({count} tables)" if count is not None else ""
            self.ctx.toast.success(f"Schema ingested successfully{suffix}")
            return True
        self.ctx.toast.error(self._error(response, "Failed to ingest schema"))
        return False

    def update(self) -> bool:
        with self.ctx.busy("Updating schema..."):
            response = self.ctx.api.update_schema(self.project_id)
        if self._succeeded(response):
            self.ctx.toast.success("Schema updated successfully")
            return True
        self.ctx.toast.error(self._error(response, "Failed to update schema"))
        return False

    def view(self) -> bool:
        with self.ctx.busy("Loading stored schema..."):
            response = self.ctx.api.get_schema_from_qdrant(self.project_id)
        if not self._succeeded(response):
            self.ctx.toast.error(self._error(response, "Failed to load schema"))
            return False

        stored = response.data
        if stored.table_count == 0:
            self.ctx.toast.info("No schema stored yet. Ingest the schema first.")
            return False

        schema = DatabaseSchema(
            db_type=stored.db_type or "",
            database="knowledge base",
            table_count=stored.table_count,
            tables=stored.tables,
        )
        self.ctx.console.print(Panel(render_schema(schema, expanded=set()), title="Stored schema", border_style="magenta"))
        return True

    def delete(self) -> bool:
        confirmed = self.ctx.prompter.confirm(
            "Delete the stored schema? The assistant will not know your tables until it is ingested again",
            default=False,
        )
        if not confirmed:
            self.ctx.toast.info("Delete cancelled")
            return False

        with self.ctx.busy("Deleting schema..."):
            response = self.ctx.api.delete_schema(self.project_id)
        if self._succeeded(response, require_data=False):
            self.ctx.toast.success("Schema deleted successfully")
            return True
        self.ctx.toast.error(self._error(response, "Failed to delete schema"))
        return False

    @staticmethod
    def _succeeded(response, require_data: bool = True) -> bool:
        # Only an explicit success=false in the payload overrides the envelope
        if not response.success:
            return False
        if response.data is None:
            return not require_data
        return response.data.success is not False

    @staticmethod
    def _error(response, fallback: str) -> str:
        if response.error:
            return response.error
        if response.data is not None and response.data.error:
            return response.data.error
        return fallback

    def run(self):
        """Small sub-menu; returns when the user goes back."""
        self.ctx.console.print(Panel(HELP, title="Knowledge base", border_style="magenta"))
        while True:
            command = self.ctx.prompter.ask("Knowledge", default="back").lower()
            if command in ("back", "b", "q"):
                return
            if command == "ingest":
                self.ingest()
            elif command in ("ingest --clear", "reingest"):
                self.ingest(clear_existing=True)
            elif command == "update":
                self.update()
            elif command == "view":
                self.view()
            elif command == "delete":
                self.delete()
            else:
                self.ctx.console.print(HELP)
