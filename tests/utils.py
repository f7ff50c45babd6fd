"""Request helpers shared by the API tests."""


def csrf_headers(client, **extra):
    if "csrf_token" not in client.cookies:
        client.get("/health")
    headers = {"X-CSRF-Token": client.cookies["csrf_token"]}
    headers.update(extra)
    return headers


def start_chat(client, source_page="/Kontakt"):
    resp = client.post(
        "/api/chat/start",
        data={"source_page": source_page},
        headers=csrf_headers(client),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def send(client, chat, text=None, files=None, token=None):
    data = {}
    if text is not None:
        data["message"] = text
    return client.post(
        f"/api/chat/{chat['chat_id']}/messages",
        data=data,
        files=files,
        headers=csrf_headers(client, **{"X-Chat-Token": token or chat["chat_token"]}),
    )


def login_admin(client):
    resp = client.post(
        "/auth/login",
        data={"username": "admin", "password": "secret-pass", "remember_login": "1"},
        headers=csrf_headers(client),
        follow_redirects=False,
    )
    assert resp.status_code == 302, resp.text
    return client


