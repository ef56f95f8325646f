from .__http import decryption_error_handler, server_error_handler

__all__ = ["decryption_error_handler", "server_error_handler"]
