from app.labelops import create_app

app = create_app()
