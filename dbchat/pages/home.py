from dbchat.ui.router import AppContext


def home_screen(ctx: AppContext) -> str:
    return "/dashboard" if ctx.session.is_authenticated() else "/login"
