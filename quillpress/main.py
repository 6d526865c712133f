from quillpress.core.inits import initialize_app

app = initialize_app()
