from .sorter import app

app()
