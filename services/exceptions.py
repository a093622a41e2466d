#services/exceptions.py


class TextGenerationError(Exception):
    """Transport failure talking to the text generator (retryable)"""
    pass




class TextGenerationTimeoutError(TextGenerationError):
    pass




class SessionStoreError(Exception):
    """Session store unreachable or write rejected"""
    pass




class SessionNotFoundError(Exception):
    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session not found: {session_id}")
