from functools import wraps

from fastapi import HTTPException


def check_authentication(func):
    """
      Decoratore per verificare se un utente è autenticato prima di permettere l'accesso a una funzione.

      Se l'argomento keyword 'user' manca o è None solleva HTTPException 401,
      altrimenti esegue la funzione originale.

      Utilizzo:
          Decorare gli endpoint FastAPI che richiedono autenticazione; 'user' deve
          essere passato come parametro keyword (Depends(get_current_user)).
      """

    @wraps(func)
    async def wrapper(*args, **kwargs):
        user = kwargs.get('user', None)

        if user is None:
            raise HTTPException(status_code=401, detail="Utente non autenticato")

        return await func(*args, **kwargs)

    return wrapper
