from intake import create_app

app = create_app()

if __name__ == "__main__":
    app.logger.info("Server running at http://localhost:%s", app.config["PORT"])
    app.run(host="0.0.0.0", port=app.config["PORT"])
