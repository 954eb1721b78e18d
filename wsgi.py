from reelscript import create_app

app = create_app()
