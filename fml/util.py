utf8_bom = "\ufeff"

def strip_utf8_bom(text: str) -> str:
    # removes the utf-8 byte order mark from decoded text if present.
    if text.startswith(utf8_bom):
        return text[len(utf8_bom):]
    return text
