from enum import Enum


class RepositoryErrorKey(str, Enum):
    """
    Closed set of symbolic error keys raised by the repository layer.

    Higher layers map a key plus the error's parameters to a localized message;
    the values are stable strings so they can be used as message-bundle keys.
    """

    FAILED_TO_GET_ALL_ENTITIES = "FAILED_TO_GET_ALL_ENTITIES"
    FAILED_TO_GET_ENTITY_BY_GUIDS = "FAILED_TO_GET_ENTITY_BY_GUIDS"
    FAILED_TO_DELETE_ALL = "FAILED_TO_DELETE_ALL"
    FAILED_TO_DELETE_ENTITY = "FAILED_TO_DELETE_ENTITY"
    FAILED_TO_DELETE_ALL_QUERY = "FAILED_TO_DELETE_ALL_QUERY"
    FAILED_TO_DELETE_BY_GUID_QUERY = "FAILED_TO_DELETE_BY_GUID_QUERY"
    FAILED_TO_DELETE_ALL_BY_GUIDS_QUERY = "FAILED_TO_DELETE_ALL_BY_GUIDS_QUERY"
    FAILED_TO_LOAD_ALL_ENTITIES = "FAILED_TO_LOAD_ALL_ENTITIES"
    FAILED_TO_LOAD_GUIDS_ENTITIES = "FAILED_TO_LOAD_GUIDS_ENTITIES"
    FAILED_TO_LOAD_ENTITY_BY_GUID = "FAILED_TO_LOAD_ENTITY_BY_GUID"
    PERSIST_ENTITY_FAILED = "PERSIST_ENTITY_FAILED"
    MERGE_ENTITY_FAILED = "MERGE_ENTITY_FAILED"
    DELETE_ENTITY_FAILED = "DELETE_ENTITY_FAILED"
    DELETE_ENTITIES_FAILED = "DELETE_ENTITIES_FAILED"
    FIND_ENTITY_BY_ID_FAILED = "FIND_ENTITY_BY_ID_FAILED"
    FIND_ALL_ENTITIES_FAILED = "FIND_ALL_ENTITIES_FAILED"
    FIND_BY_QUERY_FAILED = "FIND_BY_QUERY_FAILED"
    REFRESH_ENTITY_FAILED = "REFRESH_ENTITY_FAILED"
    LOCK_ENTITY_FAILED = "LOCK_ENTITY_FAILED"

    def __str__(self) -> str:
        return self.value
