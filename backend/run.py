from gamenight import create_app

app = create_app()

if __name__ == '__main__':
    # Plain HTTP; devices poll the session endpoints
    app.run(debug=True)
