from dbchat.main import build_router, parse_args
from dbchat.pages.dashboard import dashboard_screen
from dbchat.pages.login import login_screen
from dbchat.pages.new_project import new_project_screen
from dbchat.pages.project_chat import project_chat_screen
from dbchat.pages.project_settings import project_settings_screen
from dbchat.pages.signup import signup_screen
from dbchat.ui.knowledge import KnowledgeManager

from conftest import ALL_ALLOWED, PROJECT, ok, output

HISTORY = [
    {"id": 1, "project_id": 7, "role": "user", "content": "list users"},
    {
        "id": 2,
        "project_id": 7,
        "role": "assistant",
        "content": "",
        "ai_response": {"content": "Here are the users", "query": "SELECT id, name FROM users"},
    },
]


def chat_backend(backend, permission=ALL_ALLOWED):
    backend.on("GET", "/api/projects/7", ok(PROJECT))
    backend.on("GET", "/api/projects/7/permissions", ok({"project_id": 7, **permission}))
    backend.on("GET", "/api/chat/7/history", ok(HISTORY))
    backend.on("POST", "/api/projects/7/connect-db", ok({"session_id": "s1", "message": "Connected"}))
    backend.on("POST", "/api/projects/7/execute-sql", ok({
        "columns": ["id", "name"],
        "rows": [[1, "Ann"], [2, "Bob"]],
        "row_count": 2,
        "message": "Query executed successfully",
    }))


# --- routing ---
def test_protected_routes_redirect_to_login_without_token(make_ctx, backend):
    router = build_router()
    ctx = make_ctx()
    for path in ("/dashboard", "/projects/new", "/projects/7/dashboard", "/projects/7/chat", "/projects/7/settings"):
        assert router.dispatch(ctx, path) == "/login"
    assert backend.requests == []


def test_home_redirects_by_auth_state(make_ctx, session):
    router = build_router()
    assert router.dispatch(make_ctx(), "/") == "/login"
    session.set_token("tok")
    assert router.dispatch(make_ctx(), "/") == "/dashboard"


def test_routes_resolve_project_id():
    route, params = build_router().resolve("/projects/42/chat")
    assert route.screen is project_chat_screen
    assert params == {"project_id": 42}
    assert build_router().resolve("/projects/abc/chat") is None


def test_unknown_path_falls_back_to_home(make_ctx):
    ctx = make_ctx()
    assert build_router().dispatch(ctx, "/nowhere") == "/"
    assert "Unknown page: /nowhere" in output(ctx)


def test_end_of_input_stops_the_loop(make_ctx):
    ctx = make_ctx([])
    build_router().run(ctx, "/login")
    assert "Goodbye!" in output(ctx)


def test_parse_args_defaults():
    args = parse_args(["/dashboard", "--api-url", "http://api.test"])
    assert args.path == "/dashboard"
    assert args.api_url == "http://api.test"
    assert args.script is None


# --- auth screens ---
def test_login_success_stores_token(make_ctx, backend, session):
    backend.on("POST", "/api/auth/login", ok({"token": "tok-1", "user": {"id": 1, "name": "Ann", "email": "a@b.c"}}))
    ctx = make_ctx(["a@b.c", "secret"])
    assert login_screen(ctx) == "/dashboard"
    assert session.get_token() == "tok-1"
    assert "Logged in successfully." in output(ctx)
    assert backend.body(backend.requests[0]) == {"email": "a@b.c", "password": "secret"}


def test_login_failure_stays_on_login(make_ctx, backend, session):
    backend.on("POST", "/api/auth/login", {"success": False, "error": "Invalid credentials"}, status=401)
    ctx = make_ctx(["a@b.c", "wrong"])
    assert login_screen(ctx) == "/login"
    assert session.get_token() is None
    assert "Invalid credentials" in output(ctx)


def test_signup_password_mismatch_never_calls_backend(make_ctx, backend):
    ctx = make_ctx(["Ann", "a@b.c", "one", "two"])
    assert signup_screen(ctx) == "/signup"
    assert "Passwords do not match" in output(ctx)
    assert backend.requests == []


def test_signup_success_goes_to_login(make_ctx, backend):
    backend.on("POST", "/api/auth/signup", ok({"user": {"id": 1, "name": "Ann", "email": "a@b.c"}}))
    ctx = make_ctx(["Ann", "a@b.c", "pw", "pw"])
    assert signup_screen(ctx) == "/login"
    assert "Account created successfully! Please log in." in output(ctx)


# --- dashboard ---
def test_dashboard_lists_projects_and_logs_out(make_ctx, backend, session):
    session.set_token("tok")
    session.set_connection_state(7, True)
    backend.on("GET", "/api/dashboard", ok({"total_projects": 1, "total_queries": 4, "total_messages": 9}))
    backend.on("GET", "/api/projects", ok([PROJECT]))
    ctx = make_ctx(["logout"])
    assert dashboard_screen(ctx) == "/login"
    text = output(ctx)
    assert "Shop" in text
    assert "Logged out successfully." in text
    assert session.get_token() is None
    assert not session.get_connection_state(7)


def test_dashboard_opens_project_by_id(make_ctx, backend, session):
    session.set_token("tok")
    backend.on("GET", "/api/dashboard", ok({}))
    backend.on("GET", "/api/projects", ok([PROJECT]))
    assert dashboard_screen(make_ctx(["7"])) == "/projects/7/dashboard"


def test_new_project_is_created_and_opened(make_ctx, backend, session):
    session.set_token("tok")
    backend.on("POST", "/api/projects", lambda request: ok({**PROJECT, **backend.body(request), "id": 9}))
    ctx = make_ctx([
        "Inventory", "Warehouse stock", "postgresql", "local",
        "postgresql://inv:pw@localhost:5432/inventory",
        "y", "y", "n", "n",
        "y",
    ])
    assert new_project_screen(ctx) == "/projects/9/dashboard"
    body = backend.body(backend.calls("POST", "/api/projects")[0])
    assert body["name"] == "Inventory"
    assert body["allow_read"] is True
    assert body["allow_delete"] is False
    assert body["allow_ddl"] is False
    assert "Connection string looks valid" in output(ctx)


def test_project_load_failure_returns_to_dashboard(make_ctx, backend, session):
    session.set_token("tok")
    backend.on("GET", "/api/projects/7", {"success": False, "error": "Project not found"}, status=404)
    ctx = make_ctx([])
    assert build_router().dispatch(ctx, "/projects/7/chat") == "/dashboard"
    assert "Project not found" in output(ctx)


# --- chat ---
def test_chat_run_executes_after_confirmation(make_ctx, backend, session):
    session.set_token("tok")
    chat_backend(backend)
    ctx = make_ctx(["/run", "y", "/back"])
    assert project_chat_screen(ctx, 7) == "/projects/7/dashboard"

    calls = backend.calls("POST", "/api/projects/7/execute-sql")
    assert len(calls) == 1
    assert backend.body(calls[0])["query"] == "SELECT id, name FROM users"
    text = output(ctx)
    assert "Here are the users" in text
    assert "Bob" in text
    assert "Query executed successfully" in text


def test_chat_run_cancelled_does_not_execute(make_ctx, backend, session):
    session.set_token("tok")
    chat_backend(backend)
    ctx = make_ctx(["/run 1", "n", "/back"])
    project_chat_screen(ctx, 7)
    assert backend.calls("POST", "/api/projects/7/execute-sql") == []
    assert "Execution cancelled" in output(ctx)


def test_chat_run_denied_without_backend_call(make_ctx, backend, session):
    session.set_token("tok")
    chat_backend(backend, permission={**ALL_ALLOWED, "allow_read": False})
    # No confirmation is asked, so the next answer is already the next command
    ctx = make_ctx(["/run", "/back"])
    assert project_chat_screen(ctx, 7) == "/projects/7/dashboard"
    assert backend.calls("POST", "/api/projects/7/execute-sql") == []
    text = output(ctx)
    assert "Permission Denied" in text
    assert "Read operations are disabled for this project" in text


def test_chat_fail_closed_when_permissions_missing(make_ctx, backend, session):
    session.set_token("tok")
    chat_backend(backend)
    backend.on("GET", "/api/projects/7/permissions", {"success": False, "error": "nope"}, status=500)
    ctx = make_ctx(["/run", "/back"], PERMISSION_FAIL_CLOSED=True)
    project_chat_screen(ctx, 7)
    assert backend.calls("POST", "/api/projects/7/execute-sql") == []
    assert "Project permissions are unavailable" in output(ctx)


def test_chat_sends_message(make_ctx, backend, session):
    session.set_token("tok")
    chat_backend(backend)
    backend.on("GET", "/api/chat/7/history", ok([]))
    ai = {"content": "There are 2 users", "query": "SELECT COUNT(*) FROM users"}
    backend.on("POST", "/api/chat/7", ok({
        "user_message": {"id": 3, "project_id": 7, "role": "user", "content": "how many users?"},
        "ai_message": {"id": 4, "project_id": 7, "role": "assistant", "content": "", "ai_response": ai},
        "ai_response": ai,
    }))
    ctx = make_ctx(["how many users?", "/back"])
    project_chat_screen(ctx, 7)
    assert backend.body(backend.calls("POST", "/api/chat/7")[0]) == {"content": "how many users?"}
    text = output(ctx)
    assert "There are 2 users" in text
    assert "Assistant · #1" in text


# --- settings ---
def test_settings_reuses_recent_connection_state(make_ctx, backend, session):
    session.set_token("tok")
    session.set_connection_state(7, True)
    chat_backend(backend)
    ctx = make_ctx(["dashboard"])
    assert project_settings_screen(ctx, 7) == "/projects/7/dashboard"
    assert backend.calls("POST", "/api/projects/7/connect-db") == []
    assert "Connected" in output(ctx)


def test_settings_delete_project(make_ctx, backend, session):
    session.set_token("tok")
    chat_backend(backend)
    backend.on("DELETE", "/api/projects/7", ok())
    ctx = make_ctx(["delete", "y"])
    assert project_settings_screen(ctx, 7) == "/dashboard"
    assert len(backend.calls("DELETE", "/api/projects/7")) == 1
    assert "Project deleted successfully" in output(ctx)


def test_settings_permissions_update(make_ctx, backend, session):
    session.set_token("tok")
    chat_backend(backend)
    backend.on("PUT", "/api/projects/7", ok(PROJECT))
    ctx = make_ctx(["permissions", "y", "n", "y", "y", "dashboard"])
    project_settings_screen(ctx, 7)
    body = backend.body(backend.calls("PUT", "/api/projects/7")[0])
    assert body == {"allow_read": True, "allow_write": False, "allow_delete": True, "allow_ddl": True}


# --- knowledge ---
def test_view_empty_knowledge_base(make_ctx, backend, session):
    backend.on("GET", "/api/projects/7/get-schema-from-qdrant", ok({
        "success": True, "project_id": "7", "table_count": 0, "tables": [],
    }))
    ctx = make_ctx()
    assert not KnowledgeManager(ctx, 7).view()
    assert "No schema stored yet" in output(ctx)


def test_ingest_with_clear_existing(make_ctx, backend):
    backend.on("POST", "/api/projects/7/ingest-schema", ok({"success": True, "project_id": 7, "tables_ingested": 5}))
    ctx = make_ctx()
    assert KnowledgeManager(ctx, 7).ingest(clear_existing=True)
    assert backend.body(backend.requests[-1]) == {"clear_existing": True}
    assert "Schema ingested successfully (5 tables)" in output(ctx)


def test_delete_knowledge_requires_confirmation(make_ctx, backend):
    backend.on("DELETE", "/api/projects/7/delete-schema", ok({"success": True, "project_id": 7}))
    ctx = make_ctx(["n"])
    assert not KnowledgeManager(ctx, 7).delete()
    assert backend.requests == []


def test_ingest_trusts_envelope_without_inner_flag(make_ctx, backend):
    backend.on("POST", "/api/projects/7/ingest-schema", ok({"project_id": "7", "tables_ingested": 5}))
    ctx = make_ctx()
    assert KnowledgeManager(ctx, 7).ingest()
    assert "Schema ingested successfully (5 tables)" in output(ctx)


def test_ingest_reports_explicit_inner_failure(make_ctx, backend):
    backend.on("POST", "/api/projects/7/ingest-schema", ok({"success": False, "error": "Qdrant is down"}))
    ctx = make_ctx()
    assert not KnowledgeManager(ctx, 7).ingest()
    assert "Qdrant is down" in output(ctx)


def test_delete_knowledge_without_data(make_ctx, backend):
    backend.on("DELETE", "/api/projects/7/delete-schema", {"success": True, "message": "Schema deleted"})
    ctx = make_ctx(["y"])
    assert KnowledgeManager(ctx, 7).delete()
    assert "Schema deleted successfully" in output(ctx)


def test_chat_help_lists_every_command(make_ctx, backend, session):
    session.set_token("tok")
    chat_backend(backend)
    ctx = make_ctx(["/help", "/back"])
    project_chat_screen(ctx, 7)
    text = output(ctx)
    for command in ("/run [n]", "/validate [n]", "/history", "/settings", "/schema", "/logout"):
        assert command in text


def test_new_project_requires_name_and_connection_string(make_ctx, backend, session):
    session.set_token("tok")
    blank_name = ["", "", "postgresql", "", "postgresql://inv:pw@localhost/inventory", "y", "y", "y", "y", "n", "n"]
    blank_connection = ["Inventory", "", "postgresql", "", "", "y", "y", "y", "y", "n", "n"]
    for answers in (blank_name, blank_connection):
        ctx = make_ctx(answers)
        assert new_project_screen(ctx) == "/dashboard"
        assert "Please fill in all required fields" in output(ctx)
    assert backend.calls("POST", "/api/projects") == []
