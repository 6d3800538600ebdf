"""KinGraph - Kinship Graph Engine Backend.

FastAPI server that answers relationship, sibling, in-law and marriage
validation queries over family tree snapshots loaded by the caller.
"""

import logging

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("kingraph")

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from dotenv import load_dotenv

from kinship import (
    ConsanguinityRules,
    CousinPair,
    InferredRelationship,
    KinshipEngine,
    KinshipInputError,
    KnownConnections,
    LRUTTLCache,
    MarriageStatus,
    RelationshipSummary,
    SiblingClassification,
    TreeSnapshot,
    ValidationResult,
    describe_relationship,
    format_validation_errors,
    load_settings,
)

# Load environment variables
load_dotenv()
settings = load_settings()


class TreeSession:
    """A loaded snapshot with its engine and its own traversal cache."""

    def __init__(self, snapshot: TreeSnapshot):
        self.snapshot = snapshot
        self.cache = LRUTTLCache(max_size=settings.cache_max_size, ttl_seconds=settings.cache_ttl_seconds)
        self.engine = KinshipEngine(
            snapshot,
            max_generations=settings.max_generations,
            rules=settings.rules,
            cache=self.cache,
        )


# Global state: tree_id -> session, replaced whenever a snapshot is reloaded
_trees: dict[str, TreeSession] = {}


# Create FastAPI app
app = FastAPI(
    title="KinGraph",
    description="Kinship graph engine for collaborative family trees",
    version="1.0.0",
)

# Configure CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request/Response models
class SnapshotLoadResponse(BaseModel):
    """Response after loading a tree snapshot."""
    message: str
    tree_id: str
    member_count: int
    parent_child_edge_count: int
    marriage_count: int


class RelationshipResponse(BaseModel):
    """Relationship between two members, if one could be derived."""
    relationship: InferredRelationship | None
    description: str | None = None


class MarriagePair(BaseModel):
    spouse1_id: str
    spouse2_id: str


class MarriageValidationRequest(BaseModel):
    """One or more proposed marriages, optionally with rule overrides."""
    pairs: list[MarriagePair]
    rules: ConsanguinityRules | None = None


class MarriageValidationResponse(BaseModel):
    spouse1_id: str
    spouse2_id: str
    result: ValidationResult
    message: str = ""


def _engine_for(tree_id: str) -> KinshipEngine:
    session = _trees.get(tree_id)
    if session is None:
        logger.warning(f"Tree {tree_id} has no loaded snapshot")
        raise HTTPException(
            status_code=404,
            detail={"code": "TREE_NOT_FOUND", "message": f"No snapshot loaded for tree {tree_id}"},
        )
    return session.engine


def _http_error(error: KinshipInputError) -> HTTPException:
    status_code = 404 if error.code == "MEMBER_NOT_FOUND" else 400
    logger.warning(f"Rejected request: {error}")
    return HTTPException(status_code=status_code, detail={"code": error.code, "message": error.args[0]})


# Endpoints

@app.get("/health")
async def health_check():
    """Health check endpoint."""
    logger.debug("Health check requested")
    return {
        "status": "healthy",
        "trees_loaded": len(_trees),
    }


@app.put("/trees/{tree_id}/snapshot", response_model=SnapshotLoadResponse)
async def load_snapshot(tree_id: str, snapshot: TreeSnapshot):
    """Load (or replace) the snapshot of one tree."""
    logger.info(f"Loading snapshot for tree {tree_id}: {len(snapshot.members)} members")

    if snapshot.tree_id != tree_id:
        logger.warning(f"Snapshot tree_id {snapshot.tree_id} does not match path tree_id {tree_id}")
        raise HTTPException(
            status_code=400,
            detail={"code": "CROSS_TREE", "message": f"Snapshot belongs to tree {snapshot.tree_id}, not {tree_id}"},
        )

    try:
        session = TreeSession(snapshot)
    except KinshipInputError as e:
        raise _http_error(e)

    replaced = tree_id in _trees
    _trees[tree_id] = session
    logger.info(f"{'Replaced' if replaced else 'Loaded'} snapshot for tree {tree_id}")

    return SnapshotLoadResponse(
        message="Snapshot replaced" if replaced else "Snapshot loaded",
        tree_id=tree_id,
        member_count=len(snapshot.members),
        parent_child_edge_count=len(snapshot.parent_child_edges),
        marriage_count=len(snapshot.marriage_edges),
    )


@app.delete("/trees/{tree_id}/snapshot")
async def unload_snapshot(tree_id: str):
    """Drop a loaded snapshot along with its cache."""
    session = _trees.pop(tree_id, None)
    if session is None:
        logger.warning(f"Tree {tree_id} has no loaded snapshot to unload")
        raise HTTPException(
            status_code=404,
            detail={"code": "TREE_NOT_FOUND", "message": f"No snapshot loaded for tree {tree_id}"},
        )
    session.cache.clear()
    logger.info(f"Unloaded snapshot for tree {tree_id}")
    return {"message": "Snapshot unloaded", "tree_id": tree_id}


@app.get("/trees/{tree_id}/relationships/{member1_id}/{member2_id}", response_model=RelationshipResponse)
async def get_relationship(
    tree_id: str,
    member1_id: str,
    member2_id: str,
    max_generations: int | None = Query(default=None),
):
    """What member2 is to member1."""
    engine = _engine_for(tree_id)
    logger.info(f"Relationship query {member1_id} -> {member2_id} in tree {tree_id}")

    try:
        relationship = engine.relationship_between(member1_id, member2_id, max_generations)
    except KinshipInputError as e:
        raise _http_error(e)

    if relationship is None:
        return RelationshipResponse(relationship=None)

    description = describe_relationship(
        relationship,
        engine.graph.name_of(member1_id),
        engine.graph.name_of(member2_id),
    )
    return RelationshipResponse(relationship=relationship, description=description)


@app.get("/trees/{tree_id}/members/{member_id}/relationships")
async def get_member_relationships(
    tree_id: str,
    member_id: str,
    grouped: bool = Query(default=False),
    max_generations: int | None = Query(default=None),
):
    """All relationships of one member, flat (with member records) or grouped by category."""
    engine = _engine_for(tree_id)
    logger.info(f"Relationships for {member_id} in tree {tree_id} (grouped={grouped})")

    try:
        if grouped:
            return engine.grouped_relationships(member_id, max_generations)
        relationships = engine.relationships_with_details(member_id, max_generations)
    except KinshipInputError as e:
        raise _http_error(e)

    return {
        "member_id": member_id,
        "count": len(relationships),
        "relationships": relationships,
    }


@app.get("/trees/{tree_id}/members/{member_id}/siblings", response_model=list[SiblingClassification])
async def get_member_siblings(tree_id: str, member_id: str):
    engine = _engine_for(tree_id)
    try:
        return engine.siblings_of(member_id)
    except KinshipInputError as e:
        raise _http_error(e)


@app.get("/trees/{tree_id}/members/{member_id}/in-laws", response_model=list[InferredRelationship])
async def get_member_in_laws(
    tree_id: str,
    member_id: str,
    status: list[MarriageStatus] | None = Query(default=None),
    max_generations: int | None = Query(default=None),
):
    """In-laws of one member, optionally through marriages of the given statuses only."""
    engine = _engine_for(tree_id)
    try:
        return engine.in_laws_for_member(member_id, max_generations, statuses=status)
    except KinshipInputError as e:
        raise _http_error(e)


@app.post("/trees/{tree_id}/members/{member_id}/suggestions", response_model=list[InferredRelationship])
async def suggest_relationships(tree_id: str, member_id: str, known: KnownConnections):
    """Suggest relationships for a newly added member."""
    engine = _engine_for(tree_id)
    logger.info(f"Suggesting relationships for new member {member_id} in tree {tree_id}")
    try:
        return engine.suggest_relationships(member_id, known)
    except KinshipInputError as e:
        raise _http_error(e)


@app.post("/trees/{tree_id}/marriages/validate", response_model=list[MarriageValidationResponse])
async def validate_marriages(tree_id: str, request: MarriageValidationRequest):
    """Check proposed marriages against the consanguinity rules."""
    engine = _engine_for(tree_id)
    logger.info(f"Validating {len(request.pairs)} proposed marriage(s) in tree {tree_id}")

    try:
        results = engine.validate_marriages(
            [(p.spouse1_id, p.spouse2_id) for p in request.pairs],
            rules=request.rules,
        )
    except KinshipInputError as e:
        raise _http_error(e)

    return [
        MarriageValidationResponse(
            spouse1_id=pair.spouse1_id,
            spouse2_id=pair.spouse2_id,
            result=result,
            message=format_validation_errors(result),
        )
        for pair, result in zip(request.pairs, results)
    ]


# Tree-wide endpoints

@app.get("/trees/{tree_id}/cousins", response_model=list[CousinPair])
async def get_cousins(tree_id: str, max_generations: int | None = Query(default=None)):
    engine = _engine_for(tree_id)
    try:
        return engine.aggregator(max_generations).all_cousin_pairs()
    except KinshipInputError as e:
        raise _http_error(e)


@app.get("/trees/{tree_id}/in-laws", response_model=list[InferredRelationship])
async def get_in_laws(tree_id: str, max_generations: int | None = Query(default=None)):
    engine = _engine_for(tree_id)
    try:
        return engine.aggregator(max_generations).all_in_laws()
    except KinshipInputError as e:
        raise _http_error(e)


@app.get("/trees/{tree_id}/summary", response_model=RelationshipSummary)
async def get_summary(tree_id: str, max_generations: int | None = Query(default=None)):
    engine = _engine_for(tree_id)
    try:
        return engine.aggregator(max_generations).relationship_summary()
    except KinshipInputError as e:
        raise _http_error(e)


@app.get("/trees/{tree_id}/generations")
async def get_generations(tree_id: str):
    """Display generation of every member (0 = oldest)."""
    engine = _engine_for(tree_id)
    levels = engine.generation_levels()
    logger.info(f"Assigned {max(levels.values(), default=-1) + 1} generation level(s) in tree {tree_id}")
    return {"tree_id": tree_id, "levels": levels}


@app.get("/trees/{tree_id}/siblings", response_model=list[SiblingClassification])
async def get_sibling_pairs(tree_id: str):
    engine = _engine_for(tree_id)
    return engine.all_sibling_pairs()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
