def short_error_message(exc: BaseException) -> str:
    """Prefer the RPC/contract ``message`` over the full exception text."""
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message.strip():
        return message.strip()
    if exc.args and isinstance(exc.args[0], dict):
        rpc_message = exc.args[0].get("message")
        if rpc_message:
            return str(rpc_message)
    text = str(exc).strip()
    return text or exc.__class__.__name__
