"""REST resource URIs of the document service.

Pure string composition; paths are not validated or quoted here, httpx
percent-encodes whatever needs it when the request is built.
"""

from enum import Enum
from pathlib import PurePath


class ChunkPhase(str, Enum):
    START = "startupload"
    CONTINUE = "continueupload"
    FINISH = "finishupload"


def _join(*parts: str) -> str:
    return "/".join(part.strip("/") for part in parts if part and part.strip("/"))


def folder_uri(root_uri: str, folder: str) -> str:
    return f"{root_uri.rstrip('/')}/_api/web/getfolderbyserverrelativeurl('{folder}')"


def file_uri(root_uri: str, relative_url: str) -> str:
    return f"{root_uri.rstrip('/')}/_api/web/getfilebyserverrelativepath(decodedurl='{relative_url}')"


def upload_uri(root_uri: str, folder: str, local_path: str) -> str:
    """files/add target for a local file; the remote name is the local base name."""
    name = PurePath(local_path).name
    return f"{folder_uri(root_uri, folder)}/files/add(url='{name}',overwrite=true)"


def chunk_uri(root_uri: str, relative_url: str, phase: ChunkPhase, upload_id: str, offset: int = 0) -> str:
    """
    URI of one chunked-upload call.

    The start phase carries no offset; continue and finish carry the offset at
    which the posted chunk begins.
    """
    prefix = file_uri(root_uri, relative_url)
    if phase is ChunkPhase.START:
        return f"{prefix}/{phase.value}(uploadid=guid'{upload_id}')"
    return f"{prefix}/{phase.value}(uploadid=guid'{upload_id}',fileoffset={offset})"


def subfolder_path(folder: str, subfolder: str = "") -> str:
    if not subfolder:
        return folder
    return f"{folder.rstrip('/')}/{subfolder.strip('/')}"


def files_listing_uri(root_uri: str, folder: str) -> str:
    return f"{folder_uri(root_uri, folder)}/files?$select=name&$orderby=name"


def folders_listing_uri(root_uri: str, folder: str) -> str:
    return f"{folder_uri(root_uri, folder)}/?$expand=folders"


def item_uri(root_uri: str, folder: str, name: str) -> str:
    """Direct URI of a remote file, used for download and delete."""
    return f"{root_uri.rstrip('/')}/{_join(folder, name)}"
