"""CLI commands for the assessment engine.

Commands:
- init-db: Create the database schema
- import-questions: Add generated questions to a quiz
- show-quiz: Show a quiz with its questions and settings
- set-total: Redistribute a quiz's points to a target total
- submit: Submit a student's answers from a JSON file
- grade: Manually grade a submission
- review: Show per-question results of a submission
- invite / accept / uninvite: Manage invitations
- results: Per-student summary of a quiz
- profile: History and statistics of a student

The database location comes from config or ASSESSMENT_DB_PATH.
"""

import json
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from assessment.core.errors import AssessmentError
from assessment.core.quiz import GradingMode, QuizSettings
from assessment.core.service import AssessmentService, build_service
from assessment.core.submissions import StudentIdentity, SubmissionStatus
from assessment.db import init_db

app = typer.Typer(
    name="assess",
    help="Assessment and grading engine for quiz-based courses.",
    no_args_is_help=True,
)

console = Console()


def _get_service() -> AssessmentService:
    return build_service()


def _fail(message: str) -> None:
    console.print(f"[red]✗ {message}[/red]")
    raise typer.Exit(code=1)


def _read_json(path_str: str) -> dict:
    path = Path(path_str).expanduser().resolve()
    if not path.exists():
        _fail(f"Archivo no encontrado: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        _fail(f"JSON inválido en {path.name}: {e}")
    if not isinstance(data, dict):
        _fail(f"{path.name} debe contener un objeto JSON")
    return data


def _parse_point_overrides(values: list[str]) -> dict[str, int]:
    """Parse --set question_id=points pairs."""
    overrides: dict[str, int] = {}
    for raw in values:
        question_id, sep, points = raw.partition("=")
        if not sep or not question_id.strip():
            _fail(f"Formato inválido: '{raw}' (esperado pregunta=puntos)")
        try:
            overrides[question_id.strip()] = int(points)
        except ValueError:
            _fail(f"Puntos no numéricos en '{raw}'")
    return overrides


# =============================================================================
# DATABASE
# =============================================================================


@app.command(name="init-db")
def init_database() -> None:
    """Create the database and its tables (idempotent)."""
    path = init_db()
    console.print(f"[green]✓ Base de datos lista:[/green] {path}")


# =============================================================================
# QUIZZES
# =============================================================================


@app.command(name="import-questions")
def import_questions_cmd(
    quiz_id: str = typer.Argument(..., help="Quiz ID"),
    payload: str = typer.Option(
        ..., "--file", "-f", help="Path to the generated payload ({\"questions\": [...]})"
    ),
    title: str | None = typer.Option(
        None, "--title", "-t", help="Title (creates the quiz if it does not exist)"
    ),
    teacher: str = typer.Option("", "--teacher", help="Teacher ID (new quizzes only)"),
    manual: bool = typer.Option(False, "--manual", help="Use MANUAL grading mode (new quizzes only)"),
) -> None:
    """Import generated questions into a quiz.

    The payload may be plain JSON, a ```json fenced block, or text
    containing one JSON object.
    """
    payload_path = Path(payload).expanduser().resolve()
    if not payload_path.exists():
        _fail(f"Archivo no encontrado: {payload_path}")

    service = _get_service()

    if service.store.load_quiz(quiz_id) is None:
        if not title:
            _fail(f"El cuestionario {quiz_id} no existe; usa --title para crearlo")
        settings = QuizSettings.from_defaults()
        if manual:
            settings.grading_mode = GradingMode.MANUAL
        service.create_quiz(quiz_id, title, settings=settings, teacher_id=teacher)
        console.print(f"[blue]Cuestionario creado:[/blue] {quiz_id}")

    try:
        result = service.import_questions(quiz_id, payload_path.read_text(encoding="utf-8"))
    except AssessmentError as e:
        _fail(str(e))

    console.print(f"[green]✓ {len(result.questions)} preguntas importadas en {quiz_id}[/green]")
    if result.skipped:
        console.print(f"  [dim]ignoradas:[/dim] {result.skipped}")
    for warning in result.warnings:
        console.print(f"  [yellow]⚠ {warning}[/yellow]")


@app.command(name="show-quiz")
def show_quiz(
    quiz_id: str = typer.Argument(..., help="Quiz ID"),
) -> None:
    """Show a quiz with its questions and settings."""
    quiz = _get_service().store.load_quiz(quiz_id)
    if quiz is None:
        _fail(f"Cuestionario no encontrado: {quiz_id}")

    s = quiz.settings
    header = (
        f"[bold]{quiz.title}[/bold]\n"
        f"Preguntas: {len(quiz.questions)} | Puntos: {quiz.total_points} | Revisión: {quiz.revision}\n"
        f"Tiempo: {s.time_limit_minutes} min | Aprobado: {s.passing_score}% | "
        f"Intentos: {s.max_attempts} | Modo: {s.grading_mode.value}"
    )
    console.print(Panel(header, title=f"[bold]{quiz.id}[/bold]", expand=False))

    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right", width=3)
    table.add_column("ID", style="cyan")
    table.add_column("Tipo")
    table.add_column("Puntos", justify="right")
    table.add_column("Enunciado", width=50)

    for i, q in enumerate(quiz.questions, 1):
        text = q.text if len(q.text) <= 50 else q.text[:47] + "..."
        table.add_row(str(i), q.id, q.type.value, str(q.points), text)

    console.print(table)


@app.command(name="set-total")
def set_total(
    quiz_id: str = typer.Argument(..., help="Quiz ID"),
    total: int = typer.Argument(..., help="Target total points"),
) -> None:
    """Redistribute a quiz's points so they add up to TOTAL.

    Existing submissions keep the score they were given.
    """
    service = _get_service()
    try:
        quiz = service.set_total_points(quiz_id, total)
    except (AssessmentError, ValueError) as e:
        _fail(str(e))

    if not quiz.questions:
        console.print("[yellow]⚠ El cuestionario no tiene preguntas; nada que repartir[/yellow]")
        return

    points = ", ".join(str(q.points) for q in quiz.questions)
    console.print(f"[green]✓ Total de puntos: {quiz.total_points}[/green]")
    console.print(f"  [dim]reparto:[/dim]  {points}")
    console.print(f"  [dim]revisión:[/dim] {quiz.revision}")


# =============================================================================
# SUBMISSIONS
# =============================================================================


@app.command()
def submit(
    quiz_id: str = typer.Argument(..., help="Quiz ID"),
    answers: str = typer.Option(..., "--answers", "-a", help="Path to answers JSON file"),
    student: str = typer.Option(..., "--student", "-s", help="Student ID"),
    email: str = typer.Option("", "--email", "-e", help="Student email"),
    name: str = typer.Option("", "--name", "-n", help="Student display name"),
    timed_out: bool = typer.Option(False, "--timed-out", help="Mark as auto-submitted on timeout"),
) -> None:
    """Submit a student's answers for a quiz.

    The answers file maps question IDs to answers, either at the top
    level or under an "answers" key:
    {"answers": {"q01": "Paris", "q02": ["A", "B"], "q03": {"France": "Paris"}}}
    """
    data = _read_json(answers)
    answer_map = data.get("answers", data)
    if not isinstance(answer_map, dict):
        _fail("'answers' debe ser un objeto pregunta -> respuesta")

    service = _get_service()
    identity = StudentIdentity(student_id=student, email=email, name=name)
    try:
        result = service.submit(quiz_id, identity, answer_map, timed_out=timed_out)
    except AssessmentError as e:
        _fail(str(e))

    if result.blocked:
        _fail(result.message)

    sub = result.submission
    console.print(f"[green]✓ {result.message}[/green]")
    console.print(f"  [dim]entrega:[/dim]   {sub.id}")
    if sub.status == SubmissionStatus.GRADED:
        console.print(f"  [dim]puntuación:[/dim] {sub.score}/{result.max_score}")
    else:
        console.print("  [dim]estado:[/dim]    pendiente de revisión")
    console.print(f"  [dim]intentos restantes:[/dim] {result.decision.attempts_remaining}")


@app.command()
def grade(
    submission_id: str = typer.Argument(..., help="Submission ID"),
    set_points: list[str] = typer.Option(
        [], "--set", help="Points for one question (question_id=points), repeatable"
    ),
    points_file: str | None = typer.Option(
        None, "--points", "-p", help="JSON file mapping question IDs to points"
    ),
) -> None:
    """Grade a submission manually.

    Starts from the current per-question results and applies the given
    points. Values are clamped to each question's range.
    """
    service = _get_service()
    try:
        overrides = service.grading_form(submission_id)
        if points_file:
            overrides.update(_read_json(points_file))
        overrides.update(_parse_point_overrides(set_points))
        submission = service.grade_submission(submission_id, overrides)
    except AssessmentError as e:
        _fail(str(e))

    max_points = sum(d.max_points for d in submission.grading_details or [])
    console.print(f"[green]✓ Entrega calificada: {submission.id}[/green]")
    console.print(f"  [dim]puntuación:[/dim] {submission.score}/{max_points}")


@app.command()
def review(
    submission_id: str = typer.Argument(..., help="Submission ID"),
) -> None:
    """Review a submission with per-question results."""
    service = _get_service()
    try:
        data = service.review(submission_id)
    except AssessmentError as e:
        _fail(str(e))

    sub = data.submission
    if data.passed is None:
        verdict = "[yellow]PENDIENTE DE REVISIÓN[/yellow]"
    elif data.passed:
        verdict = "[green]APROBADO[/green]"
    else:
        verdict = "[red]NO APROBADO[/red]"

    who = sub.student_name or sub.student_email or sub.student_id
    header = (
        f"{verdict}\n"
        f"Estudiante: {who} | Puntos: {sub.score}/{data.max_score}\n"
        f"Cuestionario: {data.quiz.title} (revisión {sub.quiz_revision})"
    )
    if sub.timed_out:
        header += "\n[dim]Enviado automáticamente al agotarse el tiempo[/dim]"
    console.print(Panel(header, title=f"[bold]{sub.id}[/bold]", expand=False))

    table = Table(show_header=True, header_style="bold")
    table.add_column("Pregunta", style="cyan")
    table.add_column("Estado", justify="center", width=8)
    table.add_column("Puntos", justify="center")
    table.add_column("Respuesta", width=40)

    for detail in data.results:
        if detail.points_awarded >= detail.max_points and detail.max_points > 0:
            icon = "[green]✓[/green]"
        elif detail.points_awarded > 0:
            icon = "[yellow]~[/yellow]"
        else:
            icon = "[red]✗[/red]"
        answer = sub.answers.get(detail.question_id)
        shown = "" if answer is None else json.dumps(answer, ensure_ascii=False)
        table.add_row(
            detail.question_id,
            icon,
            f"{detail.points_awarded}/{detail.max_points}",
            shown if len(shown) <= 40 else shown[:37] + "...",
        )

    console.print(table)


@app.command()
def results(
    quiz_id: str = typer.Argument(..., help="Quiz ID"),
) -> None:
    """Per-student summary of a quiz's submissions."""
    service = _get_service()
    try:
        summaries = service.quiz_results(quiz_id)
    except AssessmentError as e:
        _fail(str(e))

    if not summaries:
        console.print("[yellow]Sin entregas todavía[/yellow]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Estudiante", style="cyan")
    table.add_column("Intentos", justify="right")
    table.add_column("Mejor", justify="right")
    table.add_column("Última entrega")
    table.add_column("Estado")

    for s in summaries:
        table.add_row(
            s.student_name or s.student_email or s.student_id,
            str(s.attempts),
            str(s.best_score),
            s.latest_submitted_at,
            s.submissions[0].status.value,
        )

    console.print(table)


@app.command()
def profile(
    student: str = typer.Argument(..., help="Student ID"),
    email: str = typer.Option(..., "--email", "-e", help="Student email"),
) -> None:
    """History and statistics of a student."""
    report = _get_service().student_profile(student, email)
    stats = report.stats

    console.print(
        Panel(
            f"Invitaciones: {stats.total_invited} | Completadas: {stats.total_completed}\n"
            f"Nota media: {stats.average_score}% | Finalización: {stats.completion_rate}%",
            title=f"[bold]{email}[/bold]",
            expand=False,
        )
    )
    for item in report.history:
        score = f"{item.score}/{item.max_score}" if item.score is not None else "-"
        console.print(f"  {item.quiz_title} [dim]({item.status.value})[/dim] {score}")


# =============================================================================
# INVITATIONS
# =============================================================================


@app.command()
def invite(
    quiz_id: str = typer.Argument(..., help="Quiz ID"),
    emails: list[str] = typer.Argument(..., help="Student emails"),
) -> None:
    """Invite students to a quiz by email."""
    service = _get_service()
    try:
        result = service.invite(quiz_id, emails)
    except AssessmentError as e:
        _fail(str(e))

    for inv in result.created:
        console.print(f"[green]✓ Invitado:[/green] {inv.email} [dim]({inv.id})[/dim]")
    for email in result.skipped:
        console.print(f"  [dim]ya invitado:[/dim] {email}")
    for email in result.invalid:
        console.print(f"  [yellow]⚠ Email inválido: {email}[/yellow]")

    if result.invalid and not result.created:
        raise typer.Exit(code=1)


@app.command()
def accept(
    quiz_id: str = typer.Argument(..., help="Quiz ID"),
    email: str = typer.Argument(..., help="Invited email"),
) -> None:
    """Accept an invitation (no effect once accepted or completed)."""
    invitation = _get_service().accept_invitation(quiz_id, email)
    if invitation is None:
        _fail(f"No hay invitación para {email} en {quiz_id}")
    console.print(f"[green]✓ Invitación {invitation.status.value}[/green]")


@app.command()
def uninvite(
    invitation_id: str = typer.Argument(..., help="Invitation ID"),
) -> None:
    """Remove a pending invitation."""
    try:
        _get_service().remove_invitation(invitation_id)
    except AssessmentError as e:
        _fail(str(e))
    console.print(f"[green]✓ Invitación eliminada: {invitation_id}[/green]")


if __name__ == "__main__":
    app()
