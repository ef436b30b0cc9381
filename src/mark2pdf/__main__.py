from .cli import app

app(prog_name="mark2pdf")
