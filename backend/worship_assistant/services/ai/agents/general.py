"""
General responder: greetings, help, questions about the assistant itself,
and the catch-all answer for unclassified queries. Static text, no I/O.
"""
from typing import Optional, Sequence

from worship_assistant.services.ai.schema import AgentResult, ConversationTurn
from worship_assistant.services.classification.classifier import is_greeting

HELP_MARKERS = ("ajuda", "help", "o que você faz", "o que voce faz", "como funciona", "comandos")
ABOUT_MARKERS = (
    "quem desenvolveu",
    "quem criou",
    "quem fez",
    "quem te criou",
    "quem é você",
    "quem e voce",
    "o que é você",
    "o que e voce",
)

GREETING_RESPONSE = """## 👋 Olá! Bem-vindo ao Assistente do Ministério de Louvor!

Sou seu assistente inteligente e posso ajudá-lo de várias formas:

### 🎵 **Músicas**
- Buscar músicas, cifras e letras
- Encontrar links do YouTube
- Informações sobre o repertório

### 📅 **Escalas**
- Ver escalas futuras e passadas
- Consultar disponibilidade
- Próximos dias de atuação

### 👥 **Membros**
- Informações sobre membros
- Aniversariantes do mês
- Quem toca cada instrumento

### 📖 **Estudos Teológicos**
- Análise bíblica de músicas
- Avaliação doutrinária reformada
- Base bíblica e confessional

**Como posso ajudá-lo hoje?** 🙏"""

HELP_RESPONSE = """## 📚 Central de Ajuda

### 🎵 **Comandos de Músicas:**
```
"Qual o link da música 10000 Razões?"
"Liste todas as músicas"
"Quantas músicas temos?"
```

### 📅 **Comandos de Escalas:**
```
"Qual a próxima escala?"
"Escala da semana"
"Quem está escalado no domingo?"
```

### 👥 **Comandos de Membros:**
```
"Quem toca violão?"
"Aniversariantes do mês"
```

### 📖 **Comandos Teológicos:**
```
"Qual a base bíblica de @Pão da Vida?"
"Quais músicas louvar tendo como base Salmo 23?"
"/teologia @Benedictus por que esta música é bíblica?"
```

### 💡 **Dicas:**
- Seja específico nas perguntas
- **Use `@nome da música` para mencionar músicas específicas**
- Use `/teologia` para forçar uma análise teológica
- Combine assuntos: "Músicas sobre Salmo 23 para domingo"

**Pronto para começar?** 🚀"""

ABOUT_RESPONSE = """## 🤖 Sobre Mim

Sou o assistente do **Ministério de Louvor**.

### 🤖 **Como Funciono:**
Identifico o tipo da sua pergunta e aciono o agente especializado adequado:

- 📖 **Agente Teológico** - Análises bíblicas
- 🎵 **Agente de Músicas** - Busca no repertório
- 📅 **Agente de Escalas** - Escalas e disponibilidade
- 👥 **Agente de Usuários** - Informações de membros
- 📚 **Agente de História** - Igreja, pastores e liderança
- 🔀 **Agente Híbrido** - Consultas que combinam assuntos
- ℹ️ **Agente Geral** - Ajuda e saudações

Digite **"ajuda"** para ver exemplos de comandos!

*Soli Deo Gloria* ✝️"""

GENERAL_RESPONSE = """## ℹ️ Assistente do Ministério de Louvor

Não entendi sua pergunta, mas posso ajudá-lo com:

**🎵 Músicas:** repertório, links do YouTube, cifras e letras

**📅 Escalas:** escalas, disponibilidade, próximos cultos

**👥 Membros:** informações de membros, instrumentos, aniversariantes

**📖 Estudos:** análise teológica, base bíblica, avaliação doutrinária

**💡 Dica:** Digite "ajuda" para ver exemplos de comandos ou faça uma pergunta específica!"""


class GeneralAgent:
    """Responds to greetings, help and anything no other responder claims."""

    name = "general"

    async def process(
        self,
        query: str,
        mentioned_entity: Optional[str] = None,
        history: Sequence[ConversationTurn] = (),
    ) -> AgentResult:
        lower = " ".join(query.lower().split())
        if is_greeting(lower):
            return AgentResult(success=True, response=GREETING_RESPONSE)
        if any(marker in lower for marker in HELP_MARKERS):
            return AgentResult(success=True, response=HELP_RESPONSE)
        if any(marker in lower for marker in ABOUT_MARKERS):
            return AgentResult(success=True, response=ABOUT_RESPONSE)
        return AgentResult(success=True, response=GENERAL_RESPONSE)
