from multiwatch import create_app, socketio

app = create_app()

if __name__ == '__main__':
    # Use SocketIO server so the ticker runs as a background task
    socketio.run(app, debug=True)
