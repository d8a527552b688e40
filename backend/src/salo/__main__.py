from salo.runner import app

app(prog_name="salo")
