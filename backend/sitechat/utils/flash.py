from fastapi.responses import RedirectResponse


def flash_redirect(url, message: str, category: str = "success", status_code: int = 303):
    response = RedirectResponse(url=str(url), status_code=status_code)
    response.set_cookie(f"flash_{category}", message, max_age=5)
    return response
