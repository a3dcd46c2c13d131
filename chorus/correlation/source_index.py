"""
Feature source cache.
"""

from __future__ import annotations

import logging
import threading

from .errors import ContractViolation
from .structure import FeatureTree, parse_feature

logger = logging.getLogger(__name__)


class SourceIndex:
    """
    Raw feature source text keyed by URI, with the parsed tree memoized.

    Sources are inserted by source-read events and parsed on first use.
    Re-reading a URI replaces its text and drops the memoized tree.
    """

    def __init__(self) -> None:
        self._sources: dict[str, str] = {}
        self._trees: dict[str, FeatureTree] = {}
        self._lock = threading.Lock()

    def put(self, uri: str, source: str) -> None:
        with self._lock:
            if uri in self._sources:
                logger.debug(f"Replacing source of {uri}")
            self._sources[uri] = source
            self._trees.pop(uri, None)

    def get(self, uri: str) -> str:
        """
        Raw source of a feature file.

        Raises:
            ContractViolation: If no source was read for the URI
        """
        with self._lock:
            try:
                return self._sources[uri]
            except KeyError:
                raise ContractViolation(f"No source was read for feature {uri}") from None

    def feature(self, uri: str) -> FeatureTree:
        """
        Parsed structure of a feature file, parsed once per URI.

        Raises:
            ContractViolation: If no source was read for the URI
            FeatureParseError: If the source is not valid Gherkin
        """
        with self._lock:
            tree = self._trees.get(uri)
            if tree is not None:
                return tree
            try:
                source = self._sources[uri]
            except KeyError:
                raise ContractViolation(f"No source was read for feature {uri}") from None
            tree = parse_feature(source, uri=uri)
            self._trees[uri] = tree
            logger.debug(f"Parsed {uri}: {len(tree.scenarios)} scenario(s)")
            return tree

    def __contains__(self, uri: object) -> bool:
        with self._lock:
            return uri in self._sources

    def __len__(self) -> int:
        with self._lock:
            return len(self._sources)
