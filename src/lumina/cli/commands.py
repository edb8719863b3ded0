"""CLI commands for Lumina.

Commands:
- serve: run the Web API
- init-db: create or migrate the SQLite store
- generate: generate a lesson and store it through the API
- auto-assign: one generated lesson per grade
- seed: start the background seed task and wait for it
- report: show a student's progress
- play: interactive terminal client
"""

import time
from pathlib import Path

import typer
from rich.console import Console

from lumina.client.api import DEFAULT_API_URL, ApiClientError, LuminaApiClient
from lumina.client.app import LuminaApp, NotAllowed, View
from lumina.client.player import InvalidTransition, LessonPlayer
from lumina.config.app_config import load_app_config
from lumina.core.curriculum import GRADES, SUBJECTS, topics_for_grade
from lumina.core.lesson_generator import GenerationError, configured_generator
from lumina.core.scoring import score_band
from lumina.db.database import Database, DatabaseError

app = typer.Typer(
    name="lumina",
    help="Home-schooling lessons, quizzes and progress reports.",
    no_args_is_help=True,
)

console = Console()

BAND_COLORS = {"strong": "green", "fair": "yellow", "needs_work": "red"}

API_URL_OPTION = typer.Option(DEFAULT_API_URL, "--api-url", help="Base URL of the Lumina API")


def _connect(api_url: str) -> LuminaApiClient:
    return LuminaApiClient.connect(api_url)


def _fail(message: str) -> None:
    console.print(f"[red]✗ {message}[/red]")
    raise typer.Exit(code=1)


# =============================================================================
# SERVER AND STORE
# =============================================================================


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", help="Bind address (default from config)"),
    port: int | None = typer.Option(None, "--port", help="Port (default from config)"),
) -> None:
    """Run the Web API with uvicorn."""
    import uvicorn

    config = load_app_config()
    uvicorn.run(
        "lumina.web.api:app",
        host=host or config.server.host,
        port=port or config.server.port,
    )


@app.command(name="init-db")
def init_db(
    db_path: str | None = typer.Option(None, "--db", help="SQLite file (default from config)"),
) -> None:
    """Create the database or apply pending migrations."""
    path = Path(db_path) if db_path else Path(load_app_config().database.path)

    try:
        with Database(path).open() as db:
            version = db.schema_version()
    except DatabaseError as e:
        _fail(f"Could not open {path}: {e}")

    console.print("[green]✓ Database ready[/green]")
    console.print(f"  [dim]path:[/dim]    {path}")
    console.print(f"  [dim]schema:[/dim]  v{version}")


# =============================================================================
# LESSONS
# =============================================================================


@app.command()
def generate(
    subject: str = typer.Argument(..., help="Subject, e.g. 'Science'"),
    grade: str = typer.Argument(..., help="Grade: K or 1-12"),
    topic: str = typer.Argument(..., help="Lesson topic"),
    student_id: int | None = typer.Option(
        None, "--student-id", help="Assign privately to this student"
    ),
    provider: str | None = typer.Option(
        None, "-p", "--provider", help="LLM provider: gemini, openai, lmstudio"
    ),
    model: str | None = typer.Option(None, "-m", "--model", help="Model name (overrides config)"),
    api_url: str = API_URL_OPTION,
) -> None:
    """Generate a lesson with the configured LLM and store it."""
    if grade not in GRADES:
        _fail(f"Unknown grade: {grade} (expected one of {', '.join(GRADES)})")

    generator = configured_generator(load_app_config(), provider, model)
    api = _connect(api_url)

    try:
        with console.status(f"Generating '{topic}' for grade {grade}..."):
            content = generator(subject, grade, topic)
        lesson_id = api.create_lesson(
            title=content.title,
            subject=subject,
            grade_level=grade,
            content=content.content,
            quiz=[q.to_dict() for q in content.quiz],
            student_id=student_id,
        )
    except GenerationError as e:
        _fail(f"Lesson generation failed: {e}")
    except ApiClientError as e:
        _fail(f"Could not store lesson: {e.message}")
    finally:
        api.close()

    target = f"student {student_id}" if student_id is not None else f"Grade {grade}"
    console.print(f'[green]✓ Assigned "{content.title}" to {target}[/green]')
    console.print(f"  [dim]lesson_id:[/dim] {lesson_id}")
    console.print(f"  [dim]questions:[/dim] {len(content.quiz)}")


@app.command(name="auto-assign")
def auto_assign(
    parent: str = typer.Option(..., "--parent", prompt="Parent email or name", help="Parent login"),
    provider: str | None = typer.Option(
        None, "-p", "--provider", help="LLM provider: gemini, openai, lmstudio"
    ),
    model: str | None = typer.Option(None, "-m", "--model", help="Model name (overrides config)"),
    api_url: str = API_URL_OPTION,
) -> None:
    """Generate one grade-wide lesson for every grade, one at a time."""
    api = _connect(api_url)
    client = LuminaApp(api, generator=configured_generator(load_app_config(), provider, model))

    try:
        client.login(parent, "parent")
        with console.status(f"Generating lessons for {len(GRADES)} grades..."):
            assigned = client.auto_assign_all_grades()
    except ApiClientError as e:
        _fail(f"API error: {e.message}")
    finally:
        api.close()

    for lesson in assigned:
        console.print(f"  [green]✓[/green] Grade {lesson.grade}: {lesson.title}")
    missing = len(GRADES) - len(assigned)
    if missing:
        console.print(f"[yellow]⚠ {missing} grade(s) failed; see log[/yellow]")
    console.print(f"[green]✓ Sample lessons assigned to {len(assigned)} grade(s)[/green]")


@app.command()
def seed(
    wait: bool = typer.Option(True, "--wait/--no-wait", help="Poll until the task finishes"),
    api_url: str = API_URL_OPTION,
) -> None:
    """Start the background seed task."""
    api = _connect(api_url)
    try:
        started = api.seed()
        console.print(f"[green]✓ {started['message']}[/green]")
        console.print(f"  [dim]task_id:[/dim] {started['task_id']}")

        task = api.get_task(started["task_id"])
        while wait and task["status"] in ("pending", "running"):
            time.sleep(0.5)
            task = api.get_task(started["task_id"])
    except ApiClientError as e:
        _fail(f"API error: {e.message}")
    finally:
        api.close()

    color = "red" if task["status"] == "failed" else "green"
    console.print(f"  [dim]status:[/dim]  [{color}]{task['status']}[/{color}]")
    if task.get("error"):
        console.print(f"  [dim]error:[/dim]   {task['error']}")


# =============================================================================
# REPORTS
# =============================================================================


def _print_report(progress: list[dict], title: str) -> None:
    from rich.panel import Panel
    from rich.table import Table

    from lumina.core.scoring import ReportSummary

    summary = ReportSummary.from_scores([p["score"] for p in progress])
    band = score_band(summary.average)
    header = (
        f"Lessons completed: [bold]{summary.attempts}[/bold]\n"
        f"Average score: [{BAND_COLORS[band]}]{summary.average}%[/{BAND_COLORS[band]}]"
        f" | Best: {summary.best}%"
    )
    console.print(Panel(header, title=f"[bold]{title}[/bold]", expand=False))

    if not progress:
        console.print("[dim]No lessons completed yet.[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Lesson", style="cyan", width=40)
    table.add_column("Subject", width=16)
    table.add_column("Score", justify="center", width=8)
    table.add_column("Completed", width=20)

    for p in progress:
        color = BAND_COLORS[score_band(p["score"])]
        table.add_row(
            p.get("title") or "",
            p.get("subject") or "",
            f"[{color}]{p['score']}%[/{color}]",
            p.get("completed_at") or "",
        )
    console.print(table)


@app.command()
def report(
    student_id: int = typer.Argument(..., help="Student ID"),
    api_url: str = API_URL_OPTION,
) -> None:
    """Show a student's completed lessons and average score."""
    api = _connect(api_url)
    try:
        progress = api.list_progress(student_id)
    except ApiClientError as e:
        _fail(f"API error: {e.message}")
    finally:
        api.close()

    _print_report(progress, f"Student {student_id}")


# =============================================================================
# PLAY - Interactive client
# =============================================================================


def _choose(prompt: str, options: list[str]) -> int:
    """Print numbered options and loop until a valid index is entered."""
    while True:
        for idx, opt in enumerate(options):
            console.print(f"  {idx}. {opt}")

        raw = typer.prompt(f"{prompt} (0-{len(options) - 1})")
        try:
            choice = int(raw.strip())
            if 0 <= choice < len(options):
                return choice
            console.print(f"[yellow]⚠ Must be 0-{len(options) - 1}[/yellow]")
        except ValueError:
            console.print("[yellow]⚠ Enter a number[/yellow]")


def _play_lesson(player: LessonPlayer) -> None:
    from rich.markdown import Markdown

    console.rule(f"[bold]{player.title}[/bold]")
    console.print(Markdown(player.content))
    typer.prompt("Press Enter to take the quiz", default="", show_default=False)
    player.start_quiz()

    total = len(player.quiz)
    for idx, question in enumerate(player.quiz):
        console.print(f"\n[blue]Question {idx + 1}/{total}[/blue]")
        console.print(f"[bold]{question.question}[/bold]")
        player.select_answer(idx, _choose("Pick an answer", question.options))

    score = player.submit()
    color = BAND_COLORS[score_band(score)]
    console.print(
        f"\n[bold]Lesson complete![/bold] {player.correct_count}/{total} correct, "
        f"[{color}]{score}%[/{color}]"
    )
    if player.saved is False:
        console.print("[yellow]⚠ Result could not be saved[/yellow]")


def _parent_turn(client: LuminaApp) -> bool:
    actions = [
        "Add student",
        "Remove student",
        "Assign lesson to student",
        "Build new lesson",
        "Browse curriculum",
        "Auto-assign all grades",
        "Student report",
        "Sign out",
    ]
    choice = _choose("What next", actions)

    if choice == 0:
        name = typer.prompt("Student name")
        grade = GRADES[_choose("Grade", [f"Grade {g}" for g in GRADES])]
        email = typer.prompt("Email (optional)", default="", show_default=False) or None
        client.add_student(name, grade, email=email)
        console.print(f"[green]✓ Added {name}[/green]")
        return True

    if choice == 7:
        client.sign_out()
        return False

    if choice in (1, 2, 6):
        if not client.students:
            console.print("[yellow]⚠ No students yet[/yellow]")
            return True
        student = client.students[
            _choose("Student", [f"{s['name']} (grade {s['gradeLevel']})" for s in client.students])
        ]
        if choice == 1:
            if typer.confirm(f"Remove {student['name']}? All their progress will be lost."):
                client.remove_student(student["id"])
        elif choice == 6:
            _print_report(client.open_report(student), f"{student['name']}'s Progress")
            client.go_dashboard()
        else:
            view = (View.CREATE, View.CURRICULUM)[_choose("Assign from", ["New lesson", "Curriculum"])]
            client.assign_to(student, view)
            _assign_flow(client)
        return True

    if choice == 3:
        client.open_create()
    elif choice == 4:
        client.open_curriculum()
    else:
        with console.status("Generating lessons for every grade..."):
            assigned = client.auto_assign_all_grades()
        console.print(f"[green]✓ Sample lessons assigned to {len(assigned)} grade(s)[/green]")
        return True

    _assign_flow(client)
    return True


def _assign_flow(client: LuminaApp) -> None:
    """Run the create or curriculum view until a lesson is assigned."""
    try:
        if client.view is View.CREATE:
            subject = SUBJECTS[_choose("Subject", list(SUBJECTS))]
            grade = (client.assigning_to or {}).get("gradeLevel") or GRADES[
                _choose("Grade", [f"Grade {g}" for g in GRADES])
            ]
            topic = typer.prompt("Topic")
            with console.status("Generating lesson..."):
                assigned = client.create_lesson(subject, grade, topic)
        else:
            grades = client.curriculum_grades
            grade = grades[_choose("Grade", [f"Grade {g}" for g in grades])]
            topics = topics_for_grade(grade)
            index = _choose("Topic", [f"{t.subject}: {t.topic}" for t in topics])
            with console.status("Generating lesson..."):
                assigned = client.pick_curriculum(grade, index)
    except (GenerationError, ApiClientError) as e:
        console.print(f"[red]✗ Lesson generation failed: {e}[/red]")
        client.go_dashboard()
        return

    console.print(f'[green]✓ Successfully assigned "{assigned.title}" to {assigned.target}![/green]')
    client.go_dashboard()


def _student_turn(client: LuminaApp) -> bool:
    client.refresh()
    actions = [f"{lesson['subject']}: {lesson['title']}" for lesson in client.lessons]
    actions += ["My progress report", "Sign out"]
    choice = _choose("Pick a lesson", actions)

    if choice == len(actions) - 1:
        client.sign_out()
        return False
    if choice == len(actions) - 2:
        _print_report(client.open_report(), "My Progress Report")
        client.go_dashboard()
        return True

    player = client.start_lesson(client.lessons[choice]["id"])
    _play_lesson(player)
    _print_report(client.finish_lesson(), "My Progress Report")
    client.go_dashboard()
    return True


@app.command()
def play(
    local: bool = typer.Option(
        False, "--local", help="Generate lessons here instead of on the server"
    ),
    api_url: str = API_URL_OPTION,
) -> None:
    """Interactive terminal client: sign in, manage students, take lessons."""
    api = _connect(api_url)
    generator = configured_generator(load_app_config()) if local else None
    client = LuminaApp(api, generator=generator)

    try:
        role = ("parent", "student")[_choose("Sign in as", ["Parent", "Student"])]
        identifier = typer.prompt("Email or name" if role == "parent" else "Name")
        user = client.login(identifier, role)
        console.print(f"[green]✓ Welcome, {user['name']}![/green]")

        turn = _parent_turn if role == "parent" else _student_turn
        while turn(client):
            pass
    except ApiClientError as e:
        _fail(f"API error: {e.message}")
    except (InvalidTransition, NotAllowed) as e:
        _fail(str(e))
    finally:
        api.close()

    console.print("[dim]Signed out.[/dim]")


if __name__ == "__main__":
    app()
