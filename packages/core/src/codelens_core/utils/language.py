# Fence tags the models recognise, keyed by lower-cased file extension.
# Several extensions share a tag (jsx is still JavaScript to the model).
LANGUAGE_MAP = {
    "js": "javascript",
    "jsx": "javascript",
    "ts": "typescript",
    "tsx": "typescript",
    "py": "python",
    "java": "java",
    "cpp": "cpp",
    "c": "c",
    "cs": "csharp",
    "php": "php",
    "rb": "ruby",
    "go": "go",
    "rs": "rust",
    "swift": "swift",
    "kt": "kotlin",
    "scala": "scala",
    "html": "html",
    "css": "css",
    "scss": "scss",
    "sql": "sql",
    "sh": "bash",
    "yml": "yaml",
    "yaml": "yaml",
    "json": "json",
    "xml": "xml",
}

DEFAULT_LANGUAGE = "text"


def get_file_language(file_name: str) -> str:
    if "." not in file_name:
        return DEFAULT_LANGUAGE
    extension = file_name.rsplit(".", 1)[-1].lower()
    return LANGUAGE_MAP.get(extension, DEFAULT_LANGUAGE)
