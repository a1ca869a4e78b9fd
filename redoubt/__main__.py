from redoubt.cli.main import app

app()
