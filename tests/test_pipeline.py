"""End-to-end tests for the ingestion pipeline on the sample TypeScript project."""

from pathlib import Path

import pytest

from codedna_cli.config import IngestSettings
from codedna_cli.errors import ProjectRootError
from codedna_cli.pipeline import IngestPipeline
from codedna_cli.project_dna import load_dna


@pytest.fixture
def pipeline(temp_store) -> IngestPipeline:
    return IngestPipeline(store=temp_store)


def test_ingest_sample_project(pipeline: IngestPipeline, sample_project_path: Path, fake_git):
    """Test a full ingest of the sample project."""
    fake_git.head = "abc123"
    result = pipeline.run(sample_project_path)

    assert result.cached is False
    assert result.slug == "sample-storefront"
    assert result.files == 8
    assert result.nodes == 8
    assert result.edges == 11
    assert result.converged is True
    assert result.top_files[0].path == "src/utils/cn.ts"
    assert result.top_files[0].rank == 1.0
    assert result.dna_path.is_file()
    assert 0 < result.token_estimate <= IngestSettings().dna_max_tokens


def test_dna_document_contents(pipeline: IngestPipeline, sample_project_path: Path, fake_git):
    """Test the saved DNA document for the sample project."""
    fake_git.head = "abc123"
    fake_git.subjects = ["feat: checkout flow"]
    pipeline.run(sample_project_path)

    text = load_dna("sample-storefront")
    assert "git_head: abc123" in text
    assert "# Project DNA: sample-storefront" in text
    assert "- src/utils/cn.ts (1.0)" in text
    assert "- feat: checkout flow" in text
    assert "@types/react" not in text


def test_graph_is_persisted(pipeline: IngestPipeline, sample_project_path: Path, temp_store):
    """Test that the ranked graph is written to the store."""
    pipeline.run(sample_project_path)

    nodes = temp_store.get_nodes("sample-storefront")
    assert len(nodes) == 8
    assert nodes[0]["path"] == "src/utils/cn.ts"
    barrel = next(n for n in nodes if n["path"] == "src/utils/index.ts")
    assert barrel["exports"] == ["formatPrice", "cn"]
    assert barrel["imports"] == ["src/utils/format.ts", "src/utils/cn.ts"]

    entry = next(n for n in nodes if n["path"] == "src/index.ts")
    assert "src/lib/db.ts" in entry["imports"]
    assert entry["definitions"] == ["main"]


def test_cache_hit_skips_work(pipeline: IngestPipeline, sample_project_path: Path, fake_git):
    """Test that a current DNA skips ingestion unless forced."""
    fake_git.head = "abc123"
    pipeline.run(sample_project_path)

    second = pipeline.run(sample_project_path)
    assert second.cached is True
    assert second.files == 0

    forced = pipeline.run(sample_project_path, force=True)
    assert forced.cached is False
    assert forced.files == 8


def test_new_commit_invalidates_cache(pipeline: IngestPipeline, sample_project_path: Path, fake_git):
    """Test that a new commit regenerates the DNA."""
    fake_git.head = "abc123"
    pipeline.run(sample_project_path)

    fake_git.head = "def456"
    result = pipeline.run(sample_project_path)
    assert result.cached is False
    assert "git_head: def456" in load_dna(result.slug)


def test_no_git_never_caches(pipeline: IngestPipeline, sample_project_path: Path):
    """Test that projects outside git are always re-ingested."""
    first = pipeline.run(sample_project_path)
    second = pipeline.run(sample_project_path)

    assert "git_head: unknown" in load_dna(first.slug)
    assert second.cached is False


def test_token_budget_shrinks_top_files(sample_project_path: Path, temp_store):
    """Test that a small token budget shortens the top file list."""
    roomy = IngestPipeline(store=temp_store).run(sample_project_path, force=True)
    roomy_lines = load_dna(roomy.slug).count("\n- src/")

    tight = IngestPipeline(IngestSettings(dna_max_tokens=120), store=temp_store).run(
        sample_project_path, force=True
    )
    tight_lines = load_dna(tight.slug).count("\n- src/")

    assert tight_lines < roomy_lines
    assert len(tight.top_files) == len(roomy.top_files)


def test_budget_too_small_drops_top_files(sample_project_path: Path, temp_store):
    """Test that an impossible budget drops the top file section."""
    result = IngestPipeline(IngestSettings(dna_max_tokens=1), store=temp_store).run(
        sample_project_path, force=True
    )

    text = load_dna(result.slug)
    assert "## Top Files" not in text
    assert "git_head:" in text


def test_remote_names_the_project(pipeline: IngestPipeline, sample_project_path: Path, fake_git):
    """Test that the git remote names the project."""
    fake_git.remote = "https://github.com/acme/storefront.git"
    result = pipeline.run(sample_project_path)

    assert result.project == "storefront"
    assert result.slug == "storefront"


def test_empty_project(pipeline: IngestPipeline, temp_dir: Path):
    """Test ingesting a project with no source files."""
    result = pipeline.run(temp_dir)

    assert result.files == 0
    assert result.nodes == 0
    assert result.edges == 0
    assert result.iterations == 0
    assert result.converged is True
    assert result.top_files == []


def test_missing_root(pipeline: IngestPipeline, temp_dir: Path):
    """Test that a missing root is rejected."""
    with pytest.raises(ProjectRootError):
        pipeline.run(temp_dir / "missing")
