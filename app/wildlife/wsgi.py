from app.wildlife import create_app

app = create_app()
