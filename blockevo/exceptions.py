class BlockEvoError(Exception):
    """Base for all blockevo exceptions."""

    pass


# High-level families
class GenomeError(BlockEvoError):
    """Genome encoding and decoding failures."""

    pass


class ConstructionError(BlockEvoError):
    """Creature construction failures."""

    pass


class EvolutionError(BlockEvoError):
    """Evolution process failures."""

    pass


class PersistenceError(BlockEvoError):
    """State export and import failures."""

    pass


# Genome subtypes
class MalformedGenome(GenomeError):
    """Raised when a genome string cannot be decoded."""

    def __init__(self, message: str, token: str | None = None):
        super().__init__(message)
        self.token = token


# Construction subtypes
class ConstructionExhausted(ConstructionError):
    """Raised when no free attachment face could be found within the attempt budget."""

    pass


class NoAttachmentPoints(ConstructionError):
    """Raised when a champion has no free face left to grow from."""

    pass


# Evolution subtypes
class BacktrackExhausted(EvolutionError):
    """Raised when no untried alternative remains anywhere in the history."""

    pass


class MetricsMismatch(EvolutionError):
    """Raised when simulation results do not line up with the population."""

    pass


class TreeNodeNotFound(EvolutionError):
    """Raised when an evolution tree node id is unknown."""

    pass


class InvalidSpawnSource(EvolutionError):
    """Raised when a tree node cannot seed a new generation."""

    pass


class TournamentError(EvolutionError):
    """Tournament setup or scoring failures."""

    pass


# Persistence subtypes
class InvalidSaveVersion(PersistenceError):
    """Raised when a state document carries an unsupported version."""

    pass


class InvalidStateDocument(PersistenceError):
    """Raised when a state document fails structural validation."""

    pass
