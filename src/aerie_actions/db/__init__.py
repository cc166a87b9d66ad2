"""Relational query layer over the sequencing schema."""

from aerie_actions.db.queries import (
    DICTIONARY_KINDS,
    DictionaryKind,
    dictionary_query,
    query_list_sequences,
    query_read_adaptation,
    query_read_dictionary,
    query_read_parcel,
    query_read_parcel_for_workspace,
    query_read_sequence,
    query_write_sequence,
)

__all__ = [
    "DICTIONARY_KINDS",
    "DictionaryKind",
    "dictionary_query",
    "query_list_sequences",
    "query_read_adaptation",
    "query_read_dictionary",
    "query_read_parcel",
    "query_read_parcel_for_workspace",
    "query_read_sequence",
    "query_write_sequence",
]
