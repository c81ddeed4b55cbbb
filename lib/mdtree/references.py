"""
Named link references for the mdtree parser.

Links and images may use a named reference (``[text][name]`` or ``[name]``)
before the ``[name]: url`` definition appears. Uses of an undefined name are
kept on the reference's pending list and patched when the definition arrives;
whatever is still pending at the end of the parse gets the reference name
itself as URL.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .nodes import MDNode

logger = logging.getLogger(__name__)


@dataclass
class Reference:
    """A named link target and the nodes waiting for its URL."""

    name: str
    url: Optional[str] = None
    pending: List[MDNode] = field(default_factory=list)

    @property
    def isDefined(self) -> bool:
        return self.url is not None


class ReferenceTable:
    """
    Case-insensitive name to URL map with deferred resolution.

    One table lives for exactly one parse and is emptied by finalize().
    """

    def __init__(self):
        self._references: Dict[str, Reference] = {}
        self.resolvedCount = 0
        self.fallbackCount = 0

    @staticmethod
    def _key(name: str) -> str:
        return name.lower()

    def lookup(self, name: str) -> Optional[Reference]:
        """Find reference by name, ignoring case."""
        return self._references.get(self._key(name))

    def _getOrCreate(self, name: str) -> Reference:
        key = self._key(name)
        reference = self._references.get(key)
        if reference is None:
            reference = Reference(name=name)
            self._references[key] = reference
        return reference

    def use(self, node: MDNode, name: str) -> None:
        """
        Register a link or image node that refers to ``name``.

        The URL is applied immediately when the reference is already defined,
        otherwise the node waits on the pending list.
        """
        reference = self._getOrCreate(name)
        if reference.isDefined:
            node.url = reference.url
            self.resolvedCount += 1
        else:
            reference.pending.append(node)

    def define(self, name: str, url: str) -> None:
        """
        Define the URL for ``name`` and patch every pending node.

        The first definition of a name wins, later ones are ignored.
        """
        reference = self._getOrCreate(name)
        if reference.isDefined:
            logger.debug(f"Reference '{name}' is already defined as '{reference.url}', ignoring '{url}'")
            return

        reference.url = url
        for node in reference.pending:
            node.url = url
        if reference.pending:
            logger.debug(f"Reference '{name}' resolved {len(reference.pending)} pending node(s)")
        self.resolvedCount += len(reference.pending)
        reference.pending = []

    def finalize(self) -> int:
        """
        Resolve every still pending node with its reference name as URL.

        Empties the table afterwards.

        Returns:
            Number of nodes that got the fallback URL
        """
        fallbacks = 0
        for reference in self._references.values():
            for node in reference.pending:
                node.url = reference.name
                fallbacks += 1
            if reference.pending:
                logger.debug(f"Reference '{reference.name}' was never defined, using its name as URL")
            reference.pending = []

        self.fallbackCount += fallbacks
        self._references.clear()
        return fallbacks

    def __len__(self) -> int:
        return len(self._references)

    def __contains__(self, name: str) -> bool:
        return self._key(name) in self._references
