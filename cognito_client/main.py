"""
Cognito login web app.
GET /login stores CSRF state and redirects to the hosted UI; /callback (GET or form POST)
exchanges the code, verifies the ID token and shows the result. Port 8000.
"""
import html

from fastapi import Depends, FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse, RedirectResponse

from cognito_client.config import resolve_config
from cognito_client.errors import ErrorKind
from cognito_client.flow import AuthFlowController
from cognito_client.models import AuthResult
from cognito_client.session_store import get_session, rotate_session

SESSION_COOKIE = "cognito_session"

# Session key for the username after a successful login
USERNAME_SESSION_KEY = "cognito_username"

# HTTP status per failure kind on the callback page
ERROR_STATUS = {
    ErrorKind.MISSING_STATE: 400,
    ErrorKind.STATE_MISMATCH: 400,
    ErrorKind.MISSING_CODE: 400,
    ErrorKind.TOKEN_EXCHANGE_FAILED: 502,
    ErrorKind.KEY_SET_FETCH_FAILED: 502,
    ErrorKind.INVALID_IDENTITY_TOKEN: 401,
}

app = FastAPI(title="Cognito Client", version="0.1.0")

# Built on first use so config (including deferred secrets) resolves once per process
_controller: AuthFlowController | None = None


def get_controller() -> AuthFlowController:
    global _controller
    if _controller is None:
        _controller = AuthFlowController(resolve_config())
    return _controller


def _page(title: str, body: str, status_code: int = 200) -> HTMLResponse:
    return HTMLResponse(
        f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>{html.escape(title)}</title></head>
<body>
  <h1>{html.escape(title)}</h1>
  {body}
  <p><a href="/">Home</a></p>
</body>
</html>""",
        status_code=status_code,
    )


def _set_session_cookie(response, session_id: str) -> None:
    response.set_cookie(SESSION_COOKIE, session_id, httponly=True, samesite="lax")


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "ok", "service": "cognito_client"}


@app.get("/", response_class=HTMLResponse)
def home(request: Request):
    """Home page: current user (if any) and a login link."""
    _, session = get_session(request.cookies.get(SESSION_COOKIE))
    username = session.get(USERNAME_SESSION_KEY)
    if username:
        status = f"<p>Logged in as <code>{html.escape(str(username))}</code>.</p>"
    else:
        status = "<p>Not logged in.</p>"
    return _page("Cognito Client", f'{status}\n  <p><a href="/login">Log in</a></p>')


@app.get("/login")
def login(request: Request, controller: AuthFlowController = Depends(get_controller)):
    """Store a fresh state in the session and redirect to Cognito /oauth2/authorize."""
    session_id, session = get_session(request.cookies.get(SESSION_COOKIE))
    instruction = controller.begin_auth(session)
    response = RedirectResponse(url=instruction.url, status_code=302)
    _set_session_cookie(response, session_id)
    return response


def _finish_login(request: Request, params: dict[str, str], controller: AuthFlowController) -> HTMLResponse:
    session_id, session = get_session(request.cookies.get(SESSION_COOKIE))
    result: AuthResult = controller.complete_auth(session, params)
    if not result.ok:
        response = _page(
            "Login error",
            f"<p>{html.escape(result.reason)}</p>\n  <p><a href=\"/login\">Try again</a></p>",
            status_code=ERROR_STATUS[result.error_kind],
        )
    else:
        # New id for the logged-in session; the pre-login cookie is not reused
        session_id, session = rotate_session(session_id)
        session[USERNAME_SESSION_KEY] = result.uid
        expiry = (
            f"<p>Access token expires at {result.credentials.expires_at} (epoch seconds).</p>"
            if result.credentials.expires
            else "<p>Access token has no expiry.</p>"
        )
        response = _page(
            "Login success",
            f"<p>Logged in as <code>{html.escape(str(result.uid))}</code>.</p>\n  {expiry}",
        )
    _set_session_cookie(response, session_id)
    return response


@app.get("/callback", response_class=HTMLResponse)
def callback(request: Request, controller: AuthFlowController = Depends(get_controller)):
    """Redirect back from Cognito with ?code=...&state=... (or ?error=...&state=...)."""
    return _finish_login(request, dict(request.query_params), controller)


@app.post("/callback", response_class=HTMLResponse)
async def callback_form_post(request: Request, controller: AuthFlowController = Depends(get_controller)):
    """Same as GET /callback for response_mode=form_post."""
    form = await request.form()
    params = {k: v for k, v in form.items() if isinstance(v, str)}
    return await run_in_threadpool(_finish_login, request, params, controller)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "cognito_client.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
