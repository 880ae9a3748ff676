"""Backend-facing alias for shared utilities.

Backend modules import from here (``from ...shared import Result``) so the
shared package can be relocated without touching every feature module.
"""

from __future__ import annotations

import imgmeta_shared as _root_shared

Result = _root_shared.Result
ErrorCode = _root_shared.ErrorCode
GenerationMeta = _root_shared.GenerationMeta
ResourceRef = _root_shared.ResourceRef
ResourceType = _root_shared.ResourceType
MetadataParseError = _root_shared.MetadataParseError
NoSamplerError = _root_shared.NoSamplerError
get_logger = _root_shared.get_logger
set_level = _root_shared.set_level
log_structured = _root_shared.log_structured
request_id_var = _root_shared.request_id_var
sanitize_error_message = _root_shared.sanitize_error_message

__all__ = list(_root_shared.__all__)
