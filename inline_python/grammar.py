HOST_GRAMMAR = r"""
    start: _tree*

    _tree: group
         | PUNCT
         | IDENT
         | _literal

    group: LPAR _tree* RPAR       -> paren
         | LBRACE _tree* RBRACE   -> brace
         | LSQB _tree* RSQB       -> bracket

    _literal: STRING | RAW_STRING | CHAR | NUMBER

    LPAR: "("
    RPAR: ")"
    LBRACE: "{"
    RBRACE: "}"
    LSQB: "["
    RSQB: "]"

    STRING.3: /b?"(?:[^"\\]|\\.)*"/s
    RAW_STRING.4: /b?r#"[\s\S]*?"#/ | /b?r"[^"]*"/
    CHAR.3: /b?'(?:\\(?:x[0-9a-fA-F]{2}|u\{[0-9a-fA-F]{1,6}\}|.)|[^'\\\n])'/
    NUMBER.2: /\d\w*(?:\.\d\w*)?/
    IDENT: /(?!\d)\w+/
    PUNCT: /[!#$%&*+,\-.\/:;<=>?@^|~'\\]/

    LINE_COMMENT.5: /\/\/[^\n]*/
    BLOCK_COMMENT.5: /\/\*[\s\S]*?\*\//

    %import common.WS
    %ignore WS
    %ignore LINE_COMMENT
    %ignore BLOCK_COMMENT
"""
