class ChatError(Exception):
    """Base class for failures that end a chat request with a status code."""

    status_code = 400
    detail = "Anfrage ungültig."

    def __init__(self, detail: str = None):
        if detail:
            self.detail = detail
        super().__init__(self.detail)


class ChatValidationError(ChatError):
    status_code = 400
    detail = "Nachricht oder Datei erforderlich."


class UploadRejected(ChatError):
    status_code = 400
    detail = "Dateityp nicht erlaubt."


class Unauthorized(ChatError):
    status_code = 401
    detail = "Ungültiger Chat-Zugriff."


class ChatNotFound(ChatError):
    status_code = 404
    detail = "Chat nicht gefunden."


class AttachmentNotFound(ChatError):
    status_code = 404
    detail = "Datei nicht gefunden."


class StoreUnavailable(ChatError):
    status_code = 503
    detail = "Datenbank aktuell nicht verfügbar."
