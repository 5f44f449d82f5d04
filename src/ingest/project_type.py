"""Project-type detection from file paths, package manifest and README."""

from dataclasses import dataclass

from .models import AnalysisRecord

REACT_ENTRY_POINTS = ("src/main.tsx", "src/index.tsx", "src/App.tsx")
PYTHON_ENTRY_POINTS = ("app.py", "main.py", "manage.py")


@dataclass
class ProjectProfile:
    """Best guess of what kind of project a repository holds."""

    project_type: str = "Unknown"
    framework: str = "None"
    entry_point: str = "N/A"


def detect_project_type(record: AnalysisRecord) -> ProjectProfile:
    """Classify a repository by its top-level files.

    Checks are tried in order: a Node.js manifest, a static index.html,
    Python sources, then a Dockerfile. The first match wins.
    """
    files = record.file_paths
    present = set(files)
    manifest = record.package_manifest or {}
    readme = (record.readme or "").lower()

    if "package.json" in present:
        return _node_profile(files, manifest)

    if "index.html" in present:
        return ProjectProfile("Static Website", "HTML/CSS", "index.html")

    if "requirements.txt" in present or any(f.endswith(".py") for f in files):
        framework = "None"
        # Django wins when both are mentioned
        if "flask" in readme:
            framework = "Flask"
        if "django" in readme:
            framework = "Django"
        entry_point = next((f for f in files if f in PYTHON_ENTRY_POINTS), "main.py")
        return ProjectProfile("Python", framework, entry_point)

    if "Dockerfile" in present:
        return ProjectProfile("Containerized App", "Docker", "Dockerfile")

    return ProjectProfile()


def _node_profile(files: list[str], manifest: dict) -> ProjectProfile:
    dependencies = manifest.get("dependencies") or {}
    dev_dependencies = manifest.get("devDependencies") or {}
    profile = ProjectProfile(project_type="Node.js / JavaScript")

    if "react" in dependencies or "react" in dev_dependencies:
        profile.framework = "React"
        profile.entry_point = next(
            (f for f in files if any(entry in f for entry in REACT_ENTRY_POINTS)),
            "src/index.js",
        )
    elif "next" in dependencies:
        profile.framework = "Next.js"
        profile.entry_point = "app/page.tsx"
    elif "express" in dependencies:
        profile.framework = "Express"
        profile.entry_point = manifest.get("main") or "server.js"

    return profile
